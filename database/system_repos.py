"""System data repositories - schema version bookkeeping."""
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from .base_crud import BaseCRUD
from .connection import DatabaseConnection
from .models import SchemaVersion


class SchemaRepository(BaseCRUD):
    """Schema version repository.

    Each applied version is one row; the highest version is current.
    """

    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn)

    def current_version(self, session: Optional[Session] = None) -> int:
        """Return the current schema version, 0 if none was stamped."""
        def _query(sess):
            return sess.query(func.max(SchemaVersion.version)).scalar() or 0

        return self._run(_query, session)

    def stamp(self, version: int, session: Optional[Session] = None) -> int:
        """Record a schema version as applied.

        Returns:
            The new schema_versions row id.
        """
        def _do(sess):
            row = SchemaVersion(version=version)
            sess.add(row)
            sess.flush()
            return row.id

        return self._run(_do, session, commit=True)
