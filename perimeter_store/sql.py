"""
SQL Boundary Gateway
====================

SQLAlchemy implementation of the boundary persistence gateway.

Design:
- One transaction per operation (session_scope), rolled back on any error
- Default changes (create with is_default, set_default) clear the previous
  default of the site inside the same transaction
- SQLAlchemyError, unknown ids and bad input all surface as PersistenceError
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from perimeter_editor.errors import PersistenceError
from perimeter_editor.gateway import BoundaryRecord
from perimeter_editor.geometry.shapes import Geometry
from perimeter_store.database import create_database_engine, initialize_database, session_scope
from perimeter_store.models import BoundaryRow

logger = logging.getLogger(__name__)


class SqlBoundaryGateway:
    """
    Boundary gateway backed by a SQL database.

    Usage:
        gateway = SqlBoundaryGateway("sqlite:///boundaries.db")
        record = gateway.create("site-1", "Zone_01", geometry, is_default=True)
    """

    def __init__(self, url: Optional[str] = None, engine: Optional[Engine] = None):
        if engine is None and url is None:
            raise ValueError("Either url or engine is required")
        self.engine = engine or create_database_engine(url)
        self._session_factory = initialize_database(self.engine)

    def close(self) -> None:
        self.engine.dispose()

    @staticmethod
    def _get_row(session: Session, boundary_id: str) -> BoundaryRow:
        row = session.execute(
            select(BoundaryRow).where(BoundaryRow.id == boundary_id)
        ).scalar_one_or_none()
        if row is None:
            raise PersistenceError(f"Boundary not found: {boundary_id}")
        return row

    @staticmethod
    def _clear_default(session: Session, site_id: str) -> None:
        session.execute(
            update(BoundaryRow)
            .where(BoundaryRow.site_id == site_id, BoundaryRow.is_default.is_(True))
            .values(is_default=False)
        )

    @staticmethod
    def _check_name(name: str) -> str:
        if not name or not name.strip():
            raise PersistenceError("Boundary name must be non-empty")
        return name

    def create(
        self, site_id: str, name: str, geometry: Geometry, is_default: bool
    ) -> BoundaryRecord:
        self._check_name(name)
        try:
            with session_scope(self._session_factory) as session:
                if is_default:
                    self._clear_default(session, site_id)
                row = BoundaryRow(
                    id=str(uuid.uuid4()),
                    site_id=site_id,
                    name=name,
                    geometry=geometry.to_dict(),
                    is_default=bool(is_default),
                )
                session.add(row)
                session.flush()
                data = row.to_dict()
        except SQLAlchemyError as e:
            logger.error(f"create failed for site '{site_id}': {e}")
            raise PersistenceError(f"Could not create boundary: {e}") from e

        logger.debug(f"Boundary created: {data['id']} (site={site_id})")
        return BoundaryRecord.from_dict(data)

    def update(self, boundary_id: str, name: str, geometry: Geometry) -> None:
        self._check_name(name)
        try:
            with session_scope(self._session_factory) as session:
                row = self._get_row(session, boundary_id)
                row.name = name
                row.geometry = geometry.to_dict()
        except SQLAlchemyError as e:
            logger.error(f"update failed for {boundary_id}: {e}")
            raise PersistenceError(f"Could not update boundary: {e}") from e

    def delete(self, boundary_id: str) -> None:
        try:
            with session_scope(self._session_factory) as session:
                session.delete(self._get_row(session, boundary_id))
        except SQLAlchemyError as e:
            logger.error(f"delete failed for {boundary_id}: {e}")
            raise PersistenceError(f"Could not delete boundary: {e}") from e

    def set_default(self, site_id: str, boundary_id: str) -> None:
        try:
            with session_scope(self._session_factory) as session:
                row = self._get_row(session, boundary_id)
                if row.site_id != site_id:
                    raise PersistenceError(
                        f"Boundary {boundary_id} does not belong to site '{site_id}'"
                    )
                self._clear_default(session, site_id)
                row.is_default = True
        except SQLAlchemyError as e:
            logger.error(f"set_default failed for {boundary_id}: {e}")
            raise PersistenceError(f"Could not set default boundary: {e}") from e

    def list(self, site_id: str) -> List[BoundaryRecord]:
        try:
            with session_scope(self._session_factory) as session:
                rows = session.execute(
                    select(BoundaryRow)
                    .where(BoundaryRow.site_id == site_id)
                    .order_by(BoundaryRow.seq)
                ).scalars().all()
                data = [row.to_dict() for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"list failed for site '{site_id}': {e}")
            raise PersistenceError(f"Could not list boundaries: {e}") from e

        try:
            return [BoundaryRecord.from_dict(d) for d in data]
        except ValueError as e:
            raise PersistenceError(f"Corrupt boundary data for site '{site_id}': {e}") from e
