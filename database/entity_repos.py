"""Entity repositories - data access for the staff roster.

Each repository inherits BaseCRUD for the generic operations and adds
domain specific queries.
"""
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from .base_crud import BaseCRUD
from .connection import DatabaseConnection
from .models import StaffMember


class StaffRepository(BaseCRUD):
    """Staff roster repository.

    Stores each member's role id and lunch/dinner shift hours.
    """

    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn)

    def save(self, staff_data: Dict[str, Any],
             session: Optional[Session] = None) -> StaffMember:
        """Insert or update a staff member (matched by id).

        Args:
            staff_data: Staff data dict with the keys:
                - id: Staff id (required)
                - name: Staff name (required)
                - role_id: Role catalog id (required)
                - lunch_shift: Lunch shift hours (optional, default 0)
                - dinner_shift: Dinner shift hours (optional, default 0)
                - is_active: Active flag (optional, default True)
            session: External session (optional).

        Returns:
            The stored StaffMember.

        Raises:
            ValueError: id or name is missing.
        """
        if not staff_data.get("id"):
            raise ValueError("Staff id is required")
        if not staff_data.get("name"):
            raise ValueError("Staff name is required")

        def _do(sess):
            member = sess.get(StaffMember, staff_data["id"])
            if member is None:
                member = StaffMember(id=staff_data["id"])
                sess.add(member)
            member.name = staff_data["name"]
            member.role_id = staff_data.get("role_id", "")
            member.lunch_shift = staff_data.get("lunch_shift", 0)
            member.dinner_shift = staff_data.get("dinner_shift", 0)
            member.is_active = staff_data.get("is_active", True)
            sess.flush()
            return member

        if session is not None:
            return _do(session)

        with self._get_session() as sess:
            member = _do(sess)
            sess.commit()
            sess.refresh(member)
            return member

    def get_all_staff(self, session: Optional[Session] = None) -> List[StaffMember]:
        """Return the whole roster in creation order."""
        def _query(sess):
            return sess.query(StaffMember).order_by(
                StaffMember.created_at, StaffMember.name
            ).all()

        return self._run(_query, session)

    def get_active_staff(self,
                         session: Optional[Session] = None) -> List[StaffMember]:
        """Return active staff members."""
        return self.get_all(
            StaffMember, filters={"is_active": True}, session=session
        )

    def deactivate(self, staff_id: str,
                   session: Optional[Session] = None) -> Optional[StaffMember]:
        """Mark a staff member inactive.

        Returns:
            The updated StaffMember, or None if the id is unknown.
        """
        return self.update_by_id(
            StaffMember, staff_id, session=session, is_active=False
        )

    def delete(self, staff_id: str, session: Optional[Session] = None) -> bool:
        """Remove a staff member from the roster.

        Saved calculations keep their copy of the member's data.
        """
        return self.delete_by_id(StaffMember, staff_id, session=session)

    def search(self, keyword: str,
               session: Optional[Session] = None) -> List[StaffMember]:
        """Search staff by name.

        Args:
            keyword: Substring of the name.

        Returns:
            Matching staff members.
        """
        def _query(sess):
            return sess.query(StaffMember).filter(
                StaffMember.name.contains(keyword)
            ).all()

        return self._run(_query, session)
