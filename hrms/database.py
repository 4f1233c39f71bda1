from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


class Database:
    """
    Data-access handle: owns the engine and session factory.

    Constructed explicitly and handed to the application factory; the
    hosting process connects it at startup and disposes it at shutdown.
    """

    def __init__(self, url: str):
        self.url = url
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not connected")
        return self._engine

    def connect(self) -> None:
        if self._engine is not None:
            return
        if self.url.startswith("postgresql"):
            self._engine = create_engine(self.url, pool_pre_ping=True)
        elif self.url in ("sqlite://", "sqlite:///:memory:"):
            # A single shared connection keeps the in-memory schema alive
            self._engine = create_engine(
                self.url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            # SQLite configuration for local development/testing
            self._engine = create_engine(
                self.url, connect_args={"check_same_thread": False}
            )
        self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)

    def disconnect(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._sessionmaker = None

    def create_all(self) -> None:
        """Registers all domain models and emits the schema."""
        import hrms.models  # noqa: F401
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not connected")
        return self._sessionmaker()


def get_db(request: Request) -> Iterator[Session]:
    """
    Session Provider: Provides a database session per request.
    Routers commit; services only flush.
    """
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
