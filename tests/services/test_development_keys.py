from __future__ import annotations

from datetime import timedelta

import pytest

from valuamor.db.models import State
from valuamor.errors import AlreadyUsedError, KeyNotFoundError
from valuamor.services import development_keys


def test_single_use_key_is_claimed_once(now) -> None:
    state = State()
    key = development_keys.create_development_key(state, "Tester", "P1", False, "dev", now)

    claimed = development_keys.claim_development_key(state, key.key, "U")
    assert (claimed.used, claimed.used_by) == (True, "U")

    assert development_keys.claim_development_key(state, key.key, "U") is claimed
    with pytest.raises(AlreadyUsedError):
        development_keys.claim_development_key(state, key.key, "V")


def test_unlimited_key_never_marked_used(now) -> None:
    state = State()
    key = development_keys.create_development_key(state, "Tester", "P1", True, "dev", now)

    development_keys.claim_development_key(state, key.key, "U")
    development_keys.claim_development_key(state, key.key, "V")

    assert state.development_keys[key.key].used is False


def test_claim_unknown_key() -> None:
    with pytest.raises(KeyNotFoundError):
        development_keys.claim_development_key(State(), "DEV-NOPE", "U")


def test_delete_and_list(now) -> None:
    state = State()
    older = development_keys.create_development_key(state, "A", "P1", False, "dev", now)
    newer = development_keys.create_development_key(
        state, "B", "P2", False, "dev", now + timedelta(seconds=1)
    )

    assert development_keys.list_development_keys(state) == [newer, older]
    assert len(development_keys.list_development_keys(state, limit=1)) == 1

    development_keys.delete_development_key(state, older.key)
    with pytest.raises(KeyNotFoundError):
        development_keys.delete_development_key(state, older.key)
