"""SQLAlchemy engine and session setup."""

import logging
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_db_engine(database_url: str) -> Engine:
    """Create an engine and make sure the tables exist.

    Args:
        database_url: SQLAlchemy URL, e.g. ``sqlite:///./sketchmix.db``

    Returns:
        Configured Engine
    """
    options = {}
    if database_url.startswith("sqlite"):
        # Sessions are used from FastAPI's worker threads
        options["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every thread sees its own empty database
            options["poolclass"] = StaticPool

    engine = create_engine(database_url, **options)
    Base.metadata.create_all(engine)
    logger.info(f"Database ready at {engine.url.render_as_string(hide_password=True)}")
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)
