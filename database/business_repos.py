"""Business record repositories - data access for saved tip calculations.

A calculation and its payout lines are always written and replaced as a
whole; lines are never stored on their own.
"""
from typing import Optional, List, Dict, Any, Union
from datetime import date, timedelta
from sqlalchemy.orm import Session, selectinload
from loguru import logger

from .base_crud import BaseCRUD
from .connection import DatabaseConnection
from .models import TipCalculationRecord, CalculationLine


class CalculationRepository(BaseCRUD):
    """Tip calculation history repository."""

    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn)

    def save(self, calculation_data: Dict[str, Any],
             session: Optional[Session] = None) -> TipCalculationRecord:
        """Insert a calculation, or replace the stored one with the same id.

        Args:
            calculation_data: Calculation data dict with the keys:
                - id: Calculation id (required)
                - date: Datetime, date or ISO string (required)
                - meal_period: lunch / dinner (required)
                - total_tip_amount: Amount that was split (required)
                - undistributed_amount: Pool 1 rounding remainder (optional)
                - pool2_base_amount: Nominal pool 2 amount (optional)
                - pool2_extra_amount: Pool 2 rounding overage (optional)
                - lines: List of line dicts with staff_id, staff_name,
                  role_id, role_name, role_color, shift_value, tip_amount, pool
            session: External session (optional).

        Returns:
            The stored TipCalculationRecord with its lines loaded.

        Raises:
            ValueError: Missing id or invalid date.
        """
        if not calculation_data.get("id"):
            raise ValueError("Calculation id is required")
        calc_date = self._parse_datetime(
            calculation_data.get("date"), "Calculation date"
        )

        def _do(sess):
            record = sess.get(TipCalculationRecord, calculation_data["id"])
            if record is None:
                record = TipCalculationRecord(id=calculation_data["id"])
                sess.add(record)
            else:
                logger.debug(f"Replacing calculation {record.id}")
                record.lines.clear()
                sess.flush()

            record.date = calc_date
            record.meal_period = calculation_data.get("meal_period", "dinner")
            record.total_tip_amount = calculation_data.get("total_tip_amount", 0)
            record.undistributed_amount = calculation_data.get("undistributed_amount", 0)
            record.pool2_base_amount = calculation_data.get("pool2_base_amount", 0)
            record.pool2_extra_amount = calculation_data.get("pool2_extra_amount", 0)
            for position, line in enumerate(calculation_data.get("lines", [])):
                record.lines.append(CalculationLine(
                    position=position,
                    staff_id=line["staff_id"],
                    staff_name=line["staff_name"],
                    role_id=line["role_id"],
                    role_name=line.get("role_name") or line["role_id"],
                    role_color=line.get("role_color"),
                    shift_value=line.get("shift_value", 0),
                    tip_amount=line.get("tip_amount", 0),
                    pool=line["pool"],
                ))
            sess.flush()
            return record

        if session is not None:
            return _do(session)

        with self._get_session() as sess:
            record = _do(sess)
            sess.commit()
            calc_id = record.id
        return self.get(calc_id)

    def get(self, calculation_id: str,
            session: Optional[Session] = None) -> Optional[TipCalculationRecord]:
        """Return one calculation with its lines, or None."""
        def _query(sess):
            return sess.query(TipCalculationRecord).options(
                selectinload(TipCalculationRecord.lines)
            ).filter(TipCalculationRecord.id == calculation_id).first()

        return self._run(_query, session)

    def get_all_calculations(self, limit: Optional[int] = None,
                             session: Optional[Session] = None
                             ) -> List[TipCalculationRecord]:
        """Return saved calculations, newest first.

        Args:
            limit: Maximum number of calculations (optional).
        """
        def _query(sess):
            query = sess.query(TipCalculationRecord).options(
                selectinload(TipCalculationRecord.lines)
            ).order_by(TipCalculationRecord.date.desc(), TipCalculationRecord.id.desc())
            if limit:
                query = query.limit(limit)
            return query.all()

        return self._run(_query, session)

    def get_by_date_range(self, start_date: Union[str, date],
                          end_date: Union[str, date],
                          session: Optional[Session] = None
                          ) -> List[TipCalculationRecord]:
        """Return calculations from start_date through end_date (inclusive), oldest first.

        Args:
            start_date: First day, date or YYYY-MM-DD.
            end_date: Last day, date or YYYY-MM-DD.

        Raises:
            ValueError: Invalid date format.
        """
        start = self._parse_datetime(start_date, "Start date")
        end = self._parse_datetime(end_date, "End date")
        start = start.replace(hour=0, minute=0, second=0, microsecond=0)
        end = end.replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(days=1)

        def _query(sess):
            return sess.query(TipCalculationRecord).options(
                selectinload(TipCalculationRecord.lines)
            ).filter(
                TipCalculationRecord.date >= start,
                TipCalculationRecord.date < end,
            ).order_by(TipCalculationRecord.date).all()

        return self._run(_query, session)

    def delete(self, calculation_id: str,
               session: Optional[Session] = None) -> bool:
        """Delete a calculation and its lines.

        Returns:
            True if a calculation was deleted.
        """
        return self.delete_by_id(TipCalculationRecord, calculation_id, session=session)
