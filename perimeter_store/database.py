"""
Database setup using SQLAlchemy.

Engine + session factory per gateway (no module globals), and a session
context manager that commits, rolls back on error and always closes.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Create base class for declarative models
Base = declarative_base()


def create_database_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for url.

    In-memory SQLite ("sqlite://") shares one connection across sessions,
    otherwise every session would see an empty database.
    """
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=echo)


def initialize_database(engine: Engine) -> sessionmaker:
    """Create tables and return the session factory."""
    # Import models so they are registered on Base
    from perimeter_store import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database initialized: {engine.url.render_as_string(hide_password=True)}")

    # expire_on_commit=False keeps loaded attributes usable after the
    # session is closed
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """
    Transactional scope around a series of operations.

    Usage:
        with session_scope(factory) as session:
            session.add(row)
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.debug(f"Session rolled back due to error: {e}")
        raise
    finally:
        session.close()
