import logging
import time

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError, OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import ConfigurationError

logger = logging.getLogger(__name__)

Base = declarative_base()

_IN_MEMORY_SQLITE = {"sqlite://", "sqlite:///:memory:"}


class StoreUnavailableError(RuntimeError):
    """Raised when the store never answers the readiness poll."""


def normalize_url(url: str) -> str:
    """Point bare PostgreSQL URLs at the psycopg (v3) driver."""
    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            return "postgresql+psycopg://" + url[len(scheme):]
    return url


def build_engine(url: str) -> Engine:
    if not url:
        raise ConfigurationError("DATABASE_URL is not set")

    url = normalize_url(url)
    kwargs = {"pool_pre_ping": True}
    if url.startswith("sqlite"):
        # Needed for SQLite in multi-threaded FastAPI
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in _IN_MEMORY_SQLITE:
            # One shared connection, otherwise every checkout sees an empty database.
            kwargs["poolclass"] = StaticPool

    try:
        return create_engine(url, **kwargs)
    except (ArgumentError, ImportError) as exc:
        raise ConfigurationError(f"cannot use DATABASE_URL: {exc}") from exc


class Database:
    """Long-lived handle on the store: one engine pool, one session factory."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @classmethod
    def from_url(cls, url: str) -> "Database":
        return cls(build_engine(url))

    def session(self) -> Session:
        return self.SessionLocal()

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def wait_until_ready(self, attempts: int = 30, interval: float = 1.0) -> None:
        """Poll the store until it accepts connections.

        Raises:
            StoreUnavailableError: if none of the `attempts` pings succeed.
        """
        last_error = None
        for attempt in range(1, attempts + 1):
            try:
                self.ping()
                logger.info("Store is ready (attempt %d/%d)", attempt, attempts)
                return
            except OperationalError as exc:
                last_error = exc
                logger.warning(
                    "Store not ready (attempt %d/%d): %s", attempt, attempts, exc
                )
                if attempt < attempts:
                    time.sleep(interval)

        raise StoreUnavailableError(
            f"store did not become ready after {attempts} attempts"
        ) from last_error

    def create_schema(self) -> None:
        # Registers the users table on Base.metadata.
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("users table is ready")

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request):
    """Per-request session on the store handle opened at startup."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
