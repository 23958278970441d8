"""Engine and session handling for the Settlr tables."""

import logging
import os
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .models import Base


logger = logging.getLogger(__name__)


def get_database_url() -> str:
    """
    Resolve the connection URL from the environment.

    ``SETTLR_DATABASE_URL`` is used as is. Without it a PostgreSQL URL is
    assembled from the ``POSTGRES_*`` variables.
    """
    explicit = os.environ.get("SETTLR_DATABASE_URL")
    if explicit:
        return explicit

    env = os.environ.get
    return (
        f"postgresql://{env('POSTGRES_USER', 'postgres')}:{env('POSTGRES_PASSWORD', 'postgres')}"
        f"@{env('POSTGRES_HOST', 'localhost')}:{env('POSTGRES_PORT', '5432')}"
        f"/{env('POSTGRES_DB', 'settlr')}"
    )


class DatabaseManager:
    """
    Owns the engine for one database URL and hands out sessions.

    The engine is created on first use. SQLite URLs get a connection that
    may be shared across the API's worker threads; other backends get a
    pre-pinged pool.
    """

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or get_database_url()
        self._engine: Optional[Engine] = None
        self._sessions: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            url = make_url(self.database_url)
            if url.get_backend_name() == "sqlite":
                self._engine = create_engine(url, connect_args={"check_same_thread": False})
            else:
                self._engine = create_engine(url, pool_pre_ping=True)
            logger.info(f"Connected engine for {url.get_backend_name()} database")
        return self._engine

    def _session_factory(self) -> sessionmaker:
        if self._sessions is None:
            self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._sessions

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on error."""
        session = self._session_factory()()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_database(self) -> None:
        """Create any missing Settlr tables."""
        Base.metadata.create_all(self.engine)

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._sessions = None

    def health_check(self) -> bool:
        """Return True when a trivial query succeeds."""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.warning(f"Database health check failed: {exc}")
            return False
        return True
