from __future__ import annotations

import pytest

from valuamor.db.models import RedeemCode, RedeemRank, StateDocument
from valuamor.errors import CodeNotFoundError, StaleStateError
from valuamor.repositories import state as state_repo


async def test_load_creates_empty_document(store) -> None:
    state = await store.load()

    assert state.redeem_codes == {}
    assert state.version == 0


async def test_transaction_persists_changes(store) -> None:
    async with store.transaction() as state:
        state.hwids["U"] = "H"

    reloaded = await store.load()
    assert reloaded.hwids == {"U": "H"}
    assert reloaded.version == 1


async def test_failed_transaction_saves_nothing(store) -> None:
    with pytest.raises(CodeNotFoundError):
        async with store.transaction() as state:
            state.hwids["U"] = "H"
            raise CodeNotFoundError()

    assert (await store.load()).hwids == {}


async def test_stale_save_is_refused(store) -> None:
    first = await store.load()
    second = await store.load()
    first.hwids["A"] = "1"
    await store.save(first)

    second.hwids["B"] = "2"
    with pytest.raises(StaleStateError):
        await store.save(second)
    assert (await store.load()).hwids == {"A": "1"}


async def test_load_backfills_missing_tables(store) -> None:
    async with store._session_factory() as session:
        session.add(StateDocument(id="main", version=0, payload={"hwids": {"U": "H"}}))
        await session.commit()

    state = await store.load()

    assert state.hwids == {"U": "H"}
    async with store._session_factory() as session:
        document = await state_repo.get_document(session, "main")
        assert state_repo.missing_tables(document.payload) == []
        assert document.version == 1


async def test_import_document(store) -> None:
    await store.load()
    await store.import_document(
        {"redeemCodes": {"Valuamor-AAA-BBB": {"rank": "staff"}}}
    )

    state = await store.load()
    assert state.redeem_codes["Valuamor-AAA-BBB"] == RedeemCode(
        "Valuamor-AAA-BBB", RedeemRank.STAFF
    )
