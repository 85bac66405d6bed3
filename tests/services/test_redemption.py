from __future__ import annotations

from datetime import timedelta

import pytest

from config import settings
from valuamor.db.models import Panel, PremiumBuyer, RedeemCode, RedeemRank, State, UserKey
from valuamor.errors import (
    AlreadyUsedError,
    CodeNotFoundError,
    InsufficientPermissionError,
    KeyNotFoundError,
    UnconfiguredError,
    WrongScopeError,
)
from valuamor.services import redemption


CODE = "Valuamor-ABC-123"


def _state_with(code: RedeemCode) -> State:
    state = State()
    state.redeem_codes[code.code] = code
    return state


def test_buyer_code_pins_first_redeemer(now) -> None:
    state = _state_with(RedeemCode(CODE, RedeemRank.BUYER))
    panel = Panel("development", script="print('hi')")

    key = redemption.redeem(state, CODE, "U", "G", panel, now)

    code = state.redeem_codes[CODE]
    assert (code.used, code.used_by, code.used_in_guild) == (True, "U", "G")
    assert key.rank == "buyer"
    assert key.script == "print('hi')"
    assert key.panel_type == "development"
    assert state.user_keys["U"] is key


def test_buyer_code_refuses_second_user(now) -> None:
    state = _state_with(RedeemCode(CODE, RedeemRank.BUYER))
    redemption.redeem(state, CODE, "U", "G", None, now)

    with pytest.raises(AlreadyUsedError):
        redemption.redeem(state, CODE, "V", "G", None, now)
    assert "V" not in state.user_keys


def test_buyer_code_refuses_other_guild(now) -> None:
    state = _state_with(RedeemCode(CODE, RedeemRank.BUYER))
    redemption.redeem(state, CODE, "U", "G", None, now)

    with pytest.raises(WrongScopeError):
        redemption.redeem(state, CODE, "U", "OTHER", None, now)


def test_same_user_can_redeem_buyer_code_again(now) -> None:
    state = _state_with(RedeemCode(CODE, RedeemRank.BUYER))
    first = redemption.redeem(state, CODE, "U", "G", None, now)
    second = redemption.redeem(state, CODE, "U", "G", None, now + timedelta(hours=1))

    assert second.key != first.key
    assert state.redeem_codes[CODE].used_by == "U"


def test_non_buyer_code_is_reusable(now) -> None:
    state = _state_with(RedeemCode(CODE, RedeemRank.STAFF, duration="30 days"))
    redemption.redeem(state, CODE, "U", "G", None, now)
    key = redemption.redeem(state, CODE, "V", "H", None, now)

    assert state.redeem_codes[CODE].used is False
    assert key.rank == "staff"
    assert key.duration == "30 days"
    assert key.script == settings.default_script


def test_unknown_code(now) -> None:
    with pytest.raises(CodeNotFoundError):
        redemption.redeem(State(), "Valuamor-NOP-E00", "U", "G", None, now)


def test_create_code_collision_keeps_existing(monkeypatch, now) -> None:
    state = _state_with(RedeemCode(CODE, RedeemRank.BUYER, created_by="first"))
    monkeypatch.setattr(redemption, "generate_redeem_code", lambda: CODE)

    code = redemption.create_redeem_code(state, RedeemRank.STAFF, "1 day", "second", now)

    assert code.created_by == "first"
    assert len(state.redeem_codes) == 1


def test_buyer_code_defaults(now) -> None:
    state = State()
    code = redemption.create_buyer_code(state, "owner", now)

    assert code.rank == RedeemRank.BUYER
    assert code.single_use_per_server is True
    assert code.duration == "1x per server"
    assert code.used is False


def test_delete_and_list_codes(now) -> None:
    state = State()
    older = redemption.create_redeem_code(state, RedeemRank.HACK, "1 day", "o", now)
    newer = redemption.create_redeem_code(
        state, RedeemRank.HACK, "1 day", "o", now + timedelta(minutes=1)
    )
    assert [c.code for c in redemption.list_redeem_codes(state)] == [newer.code, older.code]

    redemption.delete_redeem_code(state, older.code)
    assert older.code not in state.redeem_codes
    with pytest.raises(CodeNotFoundError):
        redemption.delete_redeem_code(state, older.code)


def test_script_access_by_role_issues_key(now) -> None:
    state = State()
    panel = Panel("development", script="s", required_role="R")

    access = redemption.authorize_script_access(
        state, "U", "G", frozenset({"R"}), panel, now
    )

    assert access.via_role is True
    assert access.key.rank == "Role Access"
    assert access.key.duration == "Permanent (Role)"
    assert state.user_keys["U"] is access.key


def test_script_access_denied_without_role_or_premium(now) -> None:
    panel = Panel("development", required_role="R")
    with pytest.raises(InsufficientPermissionError):
        redemption.authorize_script_access(State(), "U", "G", frozenset(), panel, now)


def test_premium_without_key_needs_redeem(now) -> None:
    state = State()
    state.premium_buyers["U"] = PremiumBuyer("U", now, lifetime=True)
    with pytest.raises(KeyNotFoundError):
        redemption.authorize_script_access(
            state, "U", "G", frozenset(), Panel("development"), now
        )


def test_role_grant_rules(now) -> None:
    state = State()
    panel = Panel("development", required_role="R")
    state.premium_buyers["U"] = PremiumBuyer("U", now, expiry_date=now + timedelta(days=1))

    with pytest.raises(UnconfiguredError):
        redemption.authorize_role_grant(state, "U", "G", frozenset(), Panel("development"), now)
    with pytest.raises(InsufficientPermissionError):
        redemption.authorize_role_grant(state, "V", "G", frozenset(), panel, now)
    with pytest.raises(KeyNotFoundError):
        redemption.authorize_role_grant(state, "U", "G", frozenset(), panel, now)

    state.user_keys["U"] = UserKey("U", key="KEY-1", rank="buyer", guild_id="G")
    with pytest.raises(WrongScopeError):
        redemption.authorize_role_grant(state, "U", "H", frozenset(), panel, now)

    grant = redemption.authorize_role_grant(state, "U", "G", frozenset(), panel, now)
    assert (grant.role_id, grant.already_assigned) == ("R", False)

    grant = redemption.authorize_role_grant(state, "U", "H", frozenset({"R"}), panel, now)
    assert grant.already_assigned is True
