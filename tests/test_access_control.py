from __future__ import annotations

from types import SimpleNamespace

import pytest

from valuamor.access_control import service
from valuamor.access_control.service import Actor


@pytest.fixture(autouse=True)
def _settings(monkeypatch):
    monkeypatch.setattr(
        service,
        "settings",
        SimpleNamespace(
            owner_username="owner",
            development_username="dev",
            development_user_id="42",
            admin_role_ids=["900"],
        ),
    )


def test_owner() -> None:
    assert service.is_owner(Actor("1", "owner"))
    assert not service.is_owner(Actor("1", "someone"))


def test_developer_by_name_or_id() -> None:
    assert service.is_developer(Actor("1", "dev"))
    assert service.is_developer(Actor("42", "renamed"))
    assert not service.is_developer(Actor("1", "owner"))


def test_admin_role() -> None:
    assert service.is_admin(Actor("1", "x", frozenset({"900"})))
    assert service.is_admin(Actor("1", "owner"))
    assert not service.is_admin(Actor("1", "x", frozenset({"901"})))
