"""SQLAlchemy-backed Metadata Index.

Records live in a single ``objects`` table keyed by (bucket, key). Upserts
use the dialect's native ``INSERT ... ON CONFLICT DO UPDATE`` so a put is one
statement: concurrent writers to the same pair each land a whole
(hash, size) row and the last one wins.

SQLite is the default backend, one file per data directory. Connections run
in WAL mode with a busy timeout so writers from several processes queue
instead of failing. PostgreSQL works through the same statements.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from sqlalchemy import BigInteger, Engine, String, create_engine, delete, event, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from cas_store.domain.entities.object_record import ObjectRecord
from cas_store.domain.errors import MetadataIndexError, ObjectNotFoundError
from cas_store.infrastructure.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class ObjectRow(Base):
    __tablename__ = "objects"

    bucket: Mapped[str] = mapped_column(String, primary_key=True)
    key: Mapped[str] = mapped_column(String, primary_key=True)
    hash: Mapped[str] = mapped_column(String(64), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def to_record(self) -> ObjectRecord:
        return ObjectRecord(bucket=self.bucket, key=self.key, digest=self.hash, size=self.size)


_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class SqlMetadataIndex:
    """Metadata index on a relational database via SQLAlchemy."""

    def __init__(
        self,
        url: str,
        busy_timeout_ms: int = 5000,
        engine: Engine | None = None,
    ) -> None:
        """Initialize the index.

        Args:
            url: SQLAlchemy database URL.
            busy_timeout_ms: SQLite lock wait before a write fails.
            engine: Pre-built engine (overrides url).
        """
        self._busy_timeout_ms = busy_timeout_ms
        self._engine = engine or self._create_engine(url)

        dialect = self._engine.dialect.name
        if dialect not in _INSERTS:
            raise ValueError(f"Unsupported metadata backend: {dialect}")
        self._insert = _INSERTS[dialect]
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False)

    @property
    def engine(self) -> Engine:
        return self._engine

    def _create_engine(self, url: str) -> Engine:
        if not url.startswith("sqlite"):
            return create_engine(url, echo=False, pool_pre_ping=True)

        engine = create_engine(
            url,
            echo=False,
            connect_args={
                "check_same_thread": False,
                "timeout": self._busy_timeout_ms / 1000,
            },
        )

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn, _connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(f"PRAGMA busy_timeout={int(self._busy_timeout_ms)}")
            cursor.close()

        return engine

    def initialize(self) -> None:
        database = self._engine.url.database
        if self._engine.dialect.name == "sqlite" and database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise MetadataIndexError(f"Failed to create metadata schema: {exc}") from exc
        logger.info("metadata_index_initialized", url=self._engine.url.render_as_string())

    def upsert(self, bucket: str, key: str, digest: str, size: int) -> None:
        stmt = self._insert(ObjectRow).values(bucket=bucket, key=key, hash=digest, size=size)
        stmt = stmt.on_conflict_do_update(
            index_elements=[ObjectRow.bucket, ObjectRow.key],
            set_={"hash": stmt.excluded.hash, "size": stmt.excluded.size},
        )
        try:
            with self._session_factory.begin() as session:
                session.execute(stmt)
        except SQLAlchemyError as exc:
            raise MetadataIndexError(f"Failed to upsert {bucket}/{key}: {exc}") from exc

    def lookup(self, bucket: str, key: str) -> ObjectRecord:
        try:
            with self._session_factory() as session:
                row = session.execute(
                    select(ObjectRow).where(ObjectRow.bucket == bucket, ObjectRow.key == key)
                ).scalar_one_or_none()
                record = row.to_record() if row is not None else None
        except SQLAlchemyError as exc:
            raise MetadataIndexError(f"Failed to look up {bucket}/{key}: {exc}") from exc

        if record is None:
            raise ObjectNotFoundError(bucket, key)
        return record

    def remove(self, bucket: str, key: str) -> None:
        stmt = (
            delete(ObjectRow)
            .where(ObjectRow.bucket == bucket, ObjectRow.key == key)
            .execution_options(synchronize_session=False)
        )
        try:
            with self._session_factory.begin() as session:
                removed = session.execute(stmt).rowcount
        except SQLAlchemyError as exc:
            raise MetadataIndexError(f"Failed to remove {bucket}/{key}: {exc}") from exc

        if not removed:
            raise ObjectNotFoundError(bucket, key)

    def list(self, bucket: Optional[str] = None) -> list[ObjectRecord]:
        stmt = select(ObjectRow).order_by(ObjectRow.bucket, ObjectRow.key)
        if bucket is not None:
            stmt = stmt.where(ObjectRow.bucket == bucket)
        try:
            with self._session_factory() as session:
                return [row.to_record() for row in session.execute(stmt).scalars()]
        except SQLAlchemyError as exc:
            raise MetadataIndexError(f"Failed to list objects: {exc}") from exc

    def close(self) -> None:
        self._engine.dispose()
