"""Engine, sessions and schema management for the campaign database."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from campaign.logging_config import get_logger
from campaign.realtime.feed import install_session_hooks
from campaign.settings import settings
from campaign.storage.models import Base

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores REFERENCES clauses unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the engine and hands out transactional sessions.

    Sessions created here report their committed row changes to the
    realtime feed.
    """

    def __init__(self, database_url: str | None = None):
        """
        Args:
            database_url: SQLAlchemy URL (defaults to settings)
        """
        self.database_url = database_url or settings.database_url
        is_sqlite = self.database_url.startswith("sqlite")

        self.engine: Engine = create_engine(
            self.database_url,
            echo=settings.env == "development",
            pool_pre_ping=True,
            # Sessions are opened from the event loop and from worker threads
            connect_args={"check_same_thread": False} if is_sqlite else {},
        )
        if is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )
        install_session_hooks(self.SessionLocal)
        logger.info(
            "database_initialized",
            url=self.engine.url.render_as_string(hide_password=True),
        )

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)
        logger.info("tables_created", tables=sorted(Base.metadata.tables))

    def drop_tables(self) -> None:
        Base.metadata.drop_all(bind=self.engine)
        logger.warning("tables_dropped")

    def reset(self) -> None:
        """Drop and recreate every table. All campaign data is lost."""
        self.drop_tables()
        self.create_tables()

    def ping(self) -> bool:
        """True when the database answers a trivial query."""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("database_unreachable", error=str(e))
            return False
        return True

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Transactional scope: commit on success, roll back and re-raise on error.

        Row changes flushed inside the scope reach feed subscribers only
        after the commit.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


# Global database instance
db = Database()
