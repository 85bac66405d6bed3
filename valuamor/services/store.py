import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from valuamor.db.models import State
from valuamor.errors import StaleStateError
from valuamor.repositories import state as state_repo


logger = logging.getLogger(__name__)


class StateStore:
    """Handle on the persisted state document.

    Every mutation goes through :meth:`transaction`, which loads the whole
    document, hands it to the caller and writes it back in one piece. The
    in-process lock makes this the single writer; the version check on save
    catches writers from other processes.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        document_id: str = "main",
    ) -> None:
        self._session_factory = session_factory
        self._document_id = document_id
        self._lock = asyncio.Lock()

    async def load(self) -> State:
        async with self._session_factory() as session:
            document = await state_repo.get_document(session, self._document_id)
            if document is None:
                payload = state_repo.serialize_state(State())
                document = await state_repo.create_document(
                    session, self._document_id, payload
                )
                await session.commit()
                logger.info("Created empty state document", extra={"id": self._document_id})
                return state_repo.deserialize_state(payload, version=0)

            payload = dict(document.payload or {})
            version = document.version
            missing = state_repo.missing_tables(payload)
            if missing:
                state = state_repo.deserialize_state(payload, version=version)
                saved = await state_repo.replace_document(
                    session,
                    self._document_id,
                    state_repo.serialize_state(state),
                    expected_version=version,
                )
                if saved:
                    await session.commit()
                    state.version = version + 1
                    logger.info(
                        "Back-filled missing tables in state document",
                        extra={"tables": missing},
                    )
                return state
            return state_repo.deserialize_state(payload, version=version)

    async def save(self, state: State) -> None:
        payload = state_repo.serialize_state(state)
        async with self._session_factory() as session:
            saved = await state_repo.replace_document(
                session, self._document_id, payload, expected_version=state.version
            )
            if not saved:
                raise StaleStateError(
                    f"State document {self._document_id} changed since version {state.version}"
                )
            await session.commit()
        state.version += 1

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[State]:
        async with self._lock:
            state = await self.load()
            yield state
            await self.save(state)

    async def import_document(self, payload: dict) -> State:
        async with self._lock:
            current = await self.load()
            state = state_repo.deserialize_state(payload, version=current.version)
            await self.save(state)
            return state
