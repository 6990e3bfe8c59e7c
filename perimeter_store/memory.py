"""
In-memory boundary gateway (tests, demos, `memory://` config).
"""

import logging
import threading
import uuid
from typing import Dict, List

from perimeter_editor.errors import PersistenceError
from perimeter_editor.gateway import BoundaryRecord
from perimeter_editor.geometry.shapes import Geometry

logger = logging.getLogger(__name__)


class InMemoryBoundaryGateway:
    """
    Thread-safe dict of boundary records.

    Insertion order of the dict is the creation order.
    """

    def __init__(self):
        self._records: Dict[str, BoundaryRecord] = {}
        self._lock = threading.Lock()

    def _get(self, boundary_id: str) -> BoundaryRecord:
        record = self._records.get(boundary_id)
        if record is None:
            raise PersistenceError(f"Boundary not found: {boundary_id}")
        return record

    def _clear_default(self, site_id: str) -> None:
        for boundary_id, record in self._records.items():
            if record.site_id == site_id and record.is_default:
                self._records[boundary_id] = record.with_default(False)

    def create(
        self, site_id: str, name: str, geometry: Geometry, is_default: bool
    ) -> BoundaryRecord:
        if not name or not name.strip():
            raise PersistenceError("Boundary name must be non-empty")

        with self._lock:
            if is_default:
                self._clear_default(site_id)
            record = BoundaryRecord(
                id=str(uuid.uuid4()),
                site_id=site_id,
                name=name,
                geometry=geometry,
                is_default=bool(is_default),
            )
            self._records[record.id] = record

        logger.debug(f"Boundary created: {record.id} (site={site_id})")
        return record

    def update(self, boundary_id: str, name: str, geometry: Geometry) -> None:
        if not name or not name.strip():
            raise PersistenceError("Boundary name must be non-empty")

        with self._lock:
            record = self._get(boundary_id)
            self._records[boundary_id] = BoundaryRecord(
                id=record.id,
                site_id=record.site_id,
                name=name,
                geometry=geometry,
                is_default=record.is_default,
            )

    def delete(self, boundary_id: str) -> None:
        with self._lock:
            self._get(boundary_id)
            del self._records[boundary_id]

    def set_default(self, site_id: str, boundary_id: str) -> None:
        with self._lock:
            record = self._get(boundary_id)
            if record.site_id != site_id:
                raise PersistenceError(
                    f"Boundary {boundary_id} does not belong to site '{site_id}'"
                )
            self._clear_default(site_id)
            self._records[boundary_id] = record.with_default(True)

    def list(self, site_id: str) -> List[BoundaryRecord]:
        with self._lock:
            return [r for r in self._records.values() if r.site_id == site_id]
