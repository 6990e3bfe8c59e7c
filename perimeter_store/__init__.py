"""
perimeter_store - Boundary persistence gateways

- InMemoryBoundaryGateway: lock-protected dict (tests, demos)
- SqlBoundaryGateway: SQLAlchemy (any database URL, SQLite by default)

Both raise perimeter_editor.errors.PersistenceError on failure.
"""

from perimeter_store.memory import InMemoryBoundaryGateway
from perimeter_store.sql import SqlBoundaryGateway

MEMORY_URL = "memory://"


def create_gateway(database_url: str):
    """Gateway for a config URL ("memory://" selects the in-memory gateway)."""
    if database_url == MEMORY_URL:
        return InMemoryBoundaryGateway()
    return SqlBoundaryGateway(database_url)


__all__ = [
    "InMemoryBoundaryGateway",
    "SqlBoundaryGateway",
    "MEMORY_URL",
    "create_gateway",
]
