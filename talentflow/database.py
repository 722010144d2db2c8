"""
Document Store - typed collections over an embedded SQLite database

Every collection is an SQLAlchemy ORM model. The store is an explicitly
constructed object handed to each service, so tests get isolated instances.

Transaction model:
    - Writes run inside `transaction()`, which is all-or-nothing: an exception
      raised inside the block rolls every change back.
    - SQLite allows one writer per database file, so write transactions are
      serialized by a single asyncio lock (stronger than per-collection).
    - The database runs in WAL mode; readers see either the state before a
      commit or after it, never a partially applied transaction.

Usage:
    store = DocumentStore("sqlite:///./data/talentflow.db")
    await store.create_all()

    async with store.transaction("jobs") as session:
        job = await store.get(Job, job_id, session=session)
        job.title = "Backend Developer"
"""

import asyncio
import functools
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import event, select
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from talentflow.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite DateTime columns do not keep tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def shielded(func):
    """
    Run a mutating coroutine to completion even if its caller is cancelled.

    A caller that times out stops waiting, but the transaction underneath
    still commits or rolls back as a whole. The caller must re-fetch state.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        return await asyncio.shield(func(*args, **kwargs))

    return wrapper


class DocumentStore:
    """
    Embedded document store with transactional writes.

    Attributes:
        engine: Async SQLAlchemy engine (aiosqlite)
        session_factory: Session maker bound to the engine
    """

    def __init__(self, database_url: str, echo: bool = False):
        # Convert sqlite:/// to sqlite+aiosqlite:///
        url = database_url
        if url.startswith("sqlite:///"):
            url = url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)

        self.database_url = url
        self.engine = create_async_engine(url, echo=echo)
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )
        self._write_lock = asyncio.Lock()

        if url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _set_sqlite_pragmas)

    # ==================== Lifecycle ====================

    async def create_all(self) -> None:
        # Models must be imported so their tables are registered on Base
        import talentflow.models  # noqa: F401

        database = make_url(self.database_url).database
        if self.database_url.startswith("sqlite") and database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Document store ready at {self.database_url}")

    async def dispose(self) -> None:
        await self.engine.dispose()

    # ==================== Sessions ====================

    @asynccontextmanager
    async def read(self) -> AsyncIterator[AsyncSession]:
        """Session for reads; never commits."""
        async with self.session_factory() as session:
            yield session

    @asynccontextmanager
    async def transaction(self, *collections: str) -> AsyncIterator[AsyncSession]:
        """
        All-or-nothing write transaction.

        Args:
            *collections: Names of the collections touched (for logging)

        Yields:
            Session whose changes commit on normal exit and roll back on error
        """
        async with self._write_lock:
            async with self.session_factory() as session:
                try:
                    async with session.begin():
                        yield session
                except Exception:
                    logger.debug(f"Transaction on {', '.join(collections) or 'store'} rolled back")
                    raise

    # ==================== Record operations ====================

    async def get(
        self,
        model: Type[T],
        record_id: str,
        session: Optional[AsyncSession] = None,
    ) -> T:
        """
        Primary-key lookup.

        Raises:
            NotFoundError: If no record has this id
        """
        if session is None:
            async with self.read() as own_session:
                return await self.get(model, record_id, session=own_session)

        result = await session.execute(select(model).where(model.id == record_id))
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError(model.__tablename__, record_id)
        return record

    async def add(self, record: T) -> T:
        collection = type(record).__tablename__
        async with self.transaction(collection) as session:
            session.add(record)
        return record

    async def bulk_add(self, records: Iterable[Any]) -> List[Any]:
        """Insert many records; either all are stored or none are."""
        records = list(records)
        collections = sorted({type(r).__tablename__ for r in records})
        async with self.transaction(*collections) as session:
            session.add_all(records)
        return records

    async def update(self, model: Type[T], record_id: str, fields: Dict[str, Any]) -> T:
        """
        Apply a partial update to one record.

        Raises:
            NotFoundError: If no record has this id
            InvalidInputError: If a field is not a column of the model
        """
        columns = model.__mapper__.column_attrs.keys()
        unknown = sorted(set(fields) - set(columns))
        if unknown:
            raise InvalidInputError(f"{model.__name__} has no field(s): {', '.join(unknown)}")

        async with self.transaction(model.__tablename__) as session:
            record = await self.get(model, record_id, session=session)
            for field, value in fields.items():
                setattr(record, field, value)
        return record

    async def range(
        self,
        model: Type[T],
        column: str,
        lo: Any,
        hi: Any,
        session: Optional[AsyncSession] = None,
    ) -> List[T]:
        """Records whose indexed `column` lies in [lo, hi], ordered by it."""
        if session is None:
            async with self.read() as own_session:
                return await self.range(model, column, lo, hi, session=own_session)

        attr = getattr(model, column)
        query = select(model).where(attr >= lo, attr <= hi).order_by(attr)
        result = await session.execute(query)
        return list(result.scalars().all())

    async def snapshot(
        self,
        model: Type[T],
        *criteria: Any,
        session: Optional[AsyncSession] = None,
    ) -> List[T]:
        """Every record matching `criteria`, read in a single statement."""
        if session is None:
            async with self.read() as own_session:
                return await self.snapshot(model, *criteria, session=own_session)

        query = select(model)
        if criteria:
            query = query.where(*criteria)
        result = await session.execute(query)
        return list(result.scalars().all())


def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()
