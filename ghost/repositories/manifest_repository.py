"""
Repository for ManifestDefinition database operations
Append-only: records are never updated or deleted
"""

import logging
import threading
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ghost.db import db
from ghost.exceptions import DatabaseException
from ghost.models.manifest import ManifestDefinition
from ghost.utils import now_utc

logger = logging.getLogger("main")

MAX_APPEND_ATTEMPTS = 5


class ManifestRepository:
    """Manifest store: the newest appended record is the current manifest"""

    def __init__(self, session=None, clock=now_utc):
        self._session = session
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def _next_id(self):
        # Stored naive, always UTC
        candidate = self._clock().replace(tzinfo=None)
        latest = self.session.query(db.func.max(ManifestDefinition.id)).scalar()
        if latest is not None and candidate <= latest:
            candidate = latest + timedelta(microseconds=1)
        return candidate

    def append(self, payload: dict) -> ManifestDefinition:
        """Record a freshly fetched manifest"""
        if not isinstance(payload, dict):
            raise TypeError("Manifest payload must be a dictionary")

        version = payload.get("version")
        with self._lock:
            for attempt in range(MAX_APPEND_ATTEMPTS):
                record = ManifestDefinition(
                    id=self._next_id(),
                    version=str(version) if version is not None else None,
                    json=payload,
                )
                try:
                    self.session.add(record)
                    self.session.commit()
                    logger.info(f"Recorded manifest {record.version} at {record.id.isoformat()}")
                    return record
                except IntegrityError:
                    # Another writer took this id, try the next one
                    self.session.rollback()
                    logger.debug(f"Manifest id collision on attempt {attempt + 1}, retrying")
                except SQLAlchemyError as e:
                    self.session.rollback()
                    raise DatabaseException(f"Failed to record manifest: {e}") from e

        raise DatabaseException("Failed to record manifest: could not allocate a unique id")

    def get_current(self) -> Optional[ManifestDefinition]:
        """Most recently appended manifest, or None if nothing was ever recorded"""
        try:
            return self.session.query(ManifestDefinition).order_by(ManifestDefinition.id.desc()).first()
        except SQLAlchemyError as e:
            raise DatabaseException(f"Failed to read current manifest: {e}") from e

    def get_history(self, limit: int = None) -> List[ManifestDefinition]:
        """Recorded manifests, newest first"""
        query = self.session.query(ManifestDefinition).order_by(ManifestDefinition.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def count(self) -> int:
        return self.session.query(ManifestDefinition).count()
