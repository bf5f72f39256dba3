"""Database engine initialization and connection management."""

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .schema import Base, DispatchMetadata

SCHEMA_VERSION = "1.0.0"

# Seconds a writer waits on a locked SQLite database before failing
SQLITE_BUSY_TIMEOUT = 30


def init_database(url: str, echo: bool = False) -> sessionmaker[Any]:
    """Initialize database and return session factory."""
    db_url = make_url(url)
    engine_kwargs: dict[str, Any] = {"echo": echo}

    if db_url.get_backend_name() == "sqlite":
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": SQLITE_BUSY_TIMEOUT,
        }
        if db_url.database in (None, "", ":memory:"):
            # Every session must see the same in-memory database
            engine_kwargs["poolclass"] = StaticPool
        else:
            Path(db_url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(db_url, **engine_kwargs)
    Base.metadata.create_all(engine)

    session_maker = sessionmaker(bind=engine)

    with session_maker() as session:
        schema_version = session.get(DispatchMetadata, "schema_version")
        if not schema_version:
            session.add(DispatchMetadata(key="schema_version", value=SCHEMA_VERSION))
            session.commit()

    return session_maker
