"""Shared CRUD helpers for every repository.

Each method accepts an optional external session. Without one a
short-lived session is opened (and committed for writes).
"""
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

from sqlalchemy.orm import Session

from .connection import DatabaseConnection

ModelT = TypeVar("ModelT")


class BaseCRUD:
    """Generic CRUD base class.

    Attributes:
        conn: Database connection manager.
    """

    def __init__(self, conn: DatabaseConnection) -> None:
        self.conn = conn

    def _get_session(self) -> Session:
        return self.conn.get_session()

    def _run(self, func: Callable[[Session], Any],
             session: Optional[Session] = None, commit: bool = False) -> Any:
        """Run ``func`` in the given session, or in a new one."""
        if session is not None:
            return func(session)

        with self._get_session() as sess:
            result = func(sess)
            if commit:
                sess.commit()
            return result

    def get_by_id(self, model: Type[ModelT], record_id: Any,
                  session: Optional[Session] = None) -> Optional[ModelT]:
        """Return the record with this primary key, or None."""
        return self._run(lambda sess: sess.get(model, record_id), session)

    def get_all(self, model: Type[ModelT],
                filters: Optional[Dict[str, Any]] = None,
                session: Optional[Session] = None) -> List[ModelT]:
        """Return every record matching the equality filters.

        Args:
            model: ORM model class.
            filters: Column name -> required value.
            session: External session (optional).
        """
        def _query(sess):
            query = sess.query(model)
            for column, value in (filters or {}).items():
                query = query.filter(getattr(model, column) == value)
            return query.all()

        return self._run(_query, session)

    def update_by_id(self, model: Type[ModelT], record_id: Any,
                     session: Optional[Session] = None,
                     **values: Any) -> Optional[ModelT]:
        """Update columns of one record.

        Returns:
            The updated record, or None if it does not exist.
        """
        def _do(sess):
            record = sess.get(model, record_id)
            if record is None:
                return None
            for column, value in values.items():
                setattr(record, column, value)
            sess.flush()
            return record

        if session is not None:
            return _do(session)

        with self._get_session() as sess:
            record = _do(sess)
            if record is None:
                return None
            sess.commit()
            sess.refresh(record)
            return record

    def delete_by_id(self, model: Type[ModelT], record_id: Any,
                     session: Optional[Session] = None) -> bool:
        """Delete one record.

        Returns:
            True if a record was deleted.
        """
        def _do(sess):
            record = sess.get(model, record_id)
            if record is None:
                return False
            sess.delete(record)
            return True

        return self._run(_do, session, commit=True)

    @staticmethod
    def _parse_datetime(value: Union[str, date, datetime, None],
                        field_name: str) -> datetime:
        """Convert an ISO string or date to datetime.

        Raises:
            ValueError: Missing value or invalid format.
        """
        if value is None:
            raise ValueError(f"{field_name} is required")
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime(value.year, value.month, value.day)
        if not isinstance(value, datetime):
            try:
                value = datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                raise ValueError(f"Invalid {field_name} format: {value}")
        # Columns are naive; aware values are stored as UTC
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
