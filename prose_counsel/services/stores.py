"""
ProSe Counsel - Entity Stores
One repository per table. Each operation opens its own short session, so
every create/update is an independent atomic write; nothing spans stores.

Lookups by id return None rather than raising when the row is absent.
Any SQLAlchemy failure is re-raised as PersistenceError.
"""

import functools
import logging
from datetime import timedelta
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from prose_counsel.core.database import Base, get_db_session, get_session_factory
from prose_counsel.core.errors import PersistenceError
from prose_counsel.core.utc import utc_now
from prose_counsel.models.models import Case, ChatMessage, Deadline, Document, LearningData

logger = logging.getLogger(__name__)

UPCOMING_WINDOW = timedelta(days=30)


def _persistence_guard(fn):
    """Translate SQLAlchemy errors raised by a store method into PersistenceError."""

    @functools.wraps(fn)
    async def wrapper(self, *args, **kwargs):
        try:
            return await fn(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error("%s.%s failed: %s", type(self).__name__, fn.__name__, e)
            raise PersistenceError("Database operation failed", details=str(e)) from e

    return wrapper


class _BaseStore:
    model: type[Base]
    # Columns the API may not overwrite through update()
    immutable_fields = frozenset({"id", "created_at", "updated_at"})
    tracks_updated_at = True

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    def _session(self):
        return get_db_session(self._session_factory)

    async def _all(self, stmt) -> list:
        async with self._session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    @_persistence_guard
    async def get(self, record_id: str):
        async with self._session() as session:
            return await session.get(self.model, record_id)

    @_persistence_guard
    async def create(self, **values: Any):
        record = self.model(**values)
        async with self._session() as session:
            session.add(record)
            await session.flush()
            await session.refresh(record)
        return record


class _UpdatableMixin:
    """update() for the stores whose rows the API may edit."""

    @_persistence_guard
    async def update(self, record_id: str, **changes: Any):
        """Merge `changes` into the stored row; returns None if the id is unknown."""
        async with self._session() as session:
            record = await session.get(self.model, record_id)
            if record is None:
                return None
            for key, value in changes.items():
                if key in self.immutable_fields:
                    continue
                if not hasattr(record, key):
                    raise ValueError(f"{self.model.__name__} has no field {key!r}")
                setattr(record, key, value)
            if self.tracks_updated_at:
                record.updated_at = utc_now()
            await session.flush()
            await session.refresh(record)
        return record


class CaseStore(_UpdatableMixin, _BaseStore):
    model = Case

    @_persistence_guard
    async def list_all(self) -> list[Case]:
        return await self._all(select(Case).order_by(Case.created_at.desc()))


class DocumentStore(_UpdatableMixin, _BaseStore):
    model = Document

    @_persistence_guard
    async def list_all(self) -> list[Document]:
        return await self._all(select(Document).order_by(Document.created_at.desc()))

    @_persistence_guard
    async def list_for_case(self, case_id: str) -> list[Document]:
        return await self._all(
            select(Document)
            .where(Document.case_id == case_id)
            .order_by(Document.created_at.desc())
        )


class DeadlineStore(_UpdatableMixin, _BaseStore):
    model = Deadline
    immutable_fields = frozenset({"id", "created_at"})
    tracks_updated_at = False

    @_persistence_guard
    async def list_all(self) -> list[Deadline]:
        return await self._all(select(Deadline).order_by(Deadline.due_date.asc()))

    @_persistence_guard
    async def list_for_case(self, case_id: str) -> list[Deadline]:
        return await self._all(
            select(Deadline)
            .where(Deadline.case_id == case_id)
            .order_by(Deadline.due_date.asc())
        )

    @_persistence_guard
    async def list_upcoming(self) -> list[Deadline]:
        """Incomplete deadlines due in [now, now + 30 days), soonest first."""
        now = utc_now()
        return await self._all(
            select(Deadline)
            .where(
                Deadline.is_completed.is_(False),
                Deadline.due_date >= now,
                Deadline.due_date < now + UPCOMING_WINDOW,
            )
            .order_by(Deadline.due_date.asc())
        )


class ChatMessageStore(_BaseStore):
    model = ChatMessage
    tracks_updated_at = False

    @_persistence_guard
    async def list_for_context(self, case_id: Optional[str]) -> list[ChatMessage]:
        """Messages of one case thread, or of the general thread when case_id is None."""
        if case_id is None:
            condition = ChatMessage.case_id.is_(None)
        else:
            condition = ChatMessage.case_id == case_id
        return await self._all(
            select(ChatMessage).where(condition).order_by(ChatMessage.created_at.asc())
        )


class LearningDataStore(_BaseStore):
    model = LearningData

    @_persistence_guard
    async def list_by_category(
        self, category: str, jurisdiction: Optional[str] = None
    ) -> list[LearningData]:
        stmt = select(LearningData).where(LearningData.category == category)
        if jurisdiction:
            stmt = stmt.where(LearningData.jurisdiction == jurisdiction)
        return await self._all(stmt.order_by(LearningData.created_at.desc()))


class Storage:
    """The five stores over one session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.cases = CaseStore(session_factory)
        self.documents = DocumentStore(session_factory)
        self.deadlines = DeadlineStore(session_factory)
        self.chat_messages = ChatMessageStore(session_factory)
        self.learning = LearningDataStore(session_factory)


# Singleton instance
_storage: Optional[Storage] = None


def get_storage() -> Storage:
    """Get or create the process-wide Storage (FastAPI dependency)."""
    global _storage
    if _storage is None:
        _storage = Storage(get_session_factory())
    return _storage


def reset_storage() -> None:
    """Forget the cached Storage so the next call rebinds to the current engine."""
    global _storage
    _storage = None
