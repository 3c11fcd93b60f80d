"""Roster and history store.

TipStore owns the in-memory state of the app: the staff roster and the
saved calculation history. Every command builds a new immutable
StoreSnapshot, writes the change through to the database, and returns the
new snapshot.

Usage:
    ```python
    store = TipStore(DatabaseManager())
    store.load()
    snapshot = store.add_staff("Ana", "waiter")
    result = store.calculate("100.00", [s.id for s in snapshot.staff], "dinner")
    ```
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Tuple, Union

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from config.pool_config import PoolConfig, pool_config
from tipping.distribution import calculate_tips
from tipping.exceptions import (
    CalculationNotFoundError, EmptySelectionError, StaffNotFoundError,
    StaffValidationError,
)
from tipping.formatting import generate_calculation_id
from tipping.models import (
    FULL_SHIFT_UNIT, DistributionResult, MealPeriod, Staff, TipCalculation,
)
from tipping.roles import get_role
from tipping.validation import validate_amount, validate_shift, validate_staff_name


@dataclass(frozen=True)
class StoreSnapshot:
    """Immutable view of the roster and the calculation history.

    Attributes:
        staff: Roster in creation order.
        calculations: Saved calculations in insertion order.
    """
    staff: Tuple[Staff, ...] = ()
    calculations: Tuple[TipCalculation, ...] = ()

    def get_staff(self, staff_id: str) -> Optional[Staff]:
        for member in self.staff:
            if member.id == staff_id:
                return member
        return None

    def active_staff(self) -> List[Staff]:
        return [member for member in self.staff if member.is_active]

    def search_staff(self, query: str = "", role_id: Optional[str] = None) -> List[Staff]:
        """Filter the roster by a case-insensitive name substring and/or role id."""
        needle = (query or "").strip().lower()
        return [
            member for member in self.staff
            if needle in member.name.lower()
            and (role_id is None or member.role.id == role_id)
        ]

    def history(self) -> List[TipCalculation]:
        """Saved calculations, newest first."""
        return sorted(
            self.calculations, key=lambda calc: (calc.date, calc.id), reverse=True
        )

    def get_calculation(self, calculation_id: str) -> Optional[TipCalculation]:
        for calculation in self.calculations:
            if calculation.id == calculation_id:
                return calculation
        return None


class TipStore:
    """Store with command methods over an immutable snapshot.

    Args:
        db: DatabaseManager to write through to. None keeps everything in
            memory only.
        snapshot: Initial state (optional).
        config: Pool layout (optional, defaults to the global pool_config).
    """

    def __init__(self, db=None, snapshot: Optional[StoreSnapshot] = None,
                 config: Optional[PoolConfig] = None) -> None:
        self.db = db
        self.config = config or pool_config
        self._snapshot = snapshot or StoreSnapshot()

        for role_id in self.config.unmapped_roles():
            logger.warning(
                f"Role {role_id!r} belongs to no tip pool; staff with this role get no tips"
            )

    @property
    def snapshot(self) -> StoreSnapshot:
        return self._snapshot

    def _persist(self, action: str, method: str, *args: Any) -> None:
        """Write a change to the database; failures are logged, not raised."""
        if self.db is None:
            return
        try:
            getattr(self.db, method)(*args)
        except SQLAlchemyError as e:
            logger.error(f"Failed to {action}: {e}")

    def load(self) -> StoreSnapshot:
        """Replace the in-memory state with the roster and history from the database."""
        if self.db is None:
            return self._snapshot
        try:
            staff = self.db.load_staff()
            calculations = self.db.load_calculations()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load stored data: {e}")
            return self._snapshot

        # History is kept oldest first in memory, like a stream of added records
        self._snapshot = StoreSnapshot(
            staff=tuple(staff), calculations=tuple(reversed(calculations))
        )
        logger.info(f"Loaded {len(staff)} staff and {len(calculations)} calculations")
        return self._snapshot

    # ================================================================
    # Roster commands
    # ================================================================

    def _validate_role(self, role_id: str):
        role = get_role(role_id, self.config)
        if role is None:
            raise StaffValidationError(f"Unknown role: {role_id}")
        return role

    def add_staff(self, name: str, role_id: str,
                  lunch_shift: Union[Decimal, float, int, str] = FULL_SHIFT_UNIT,
                  dinner_shift: Union[Decimal, float, int, str] = FULL_SHIFT_UNIT,
                  is_active: bool = True) -> StoreSnapshot:
        """Add a staff member to the roster.

        Raises:
            StaffValidationError: Invalid name, role or shift hours.
        """
        member = Staff(
            id=uuid.uuid4().hex,
            name=validate_staff_name(name, self._snapshot.staff),
            role=self._validate_role(role_id),
            lunch_shift=validate_shift(lunch_shift, "Lunch shift"),
            dinner_shift=validate_shift(dinner_shift, "Dinner shift"),
            is_active=is_active,
        )
        self._snapshot = replace(self._snapshot, staff=self._snapshot.staff + (member,))
        self._persist("save staff member", "save_staff", member)
        logger.info(f"Added staff member {member.name} ({member.role.name})")
        return self._snapshot

    def update_staff(self, staff_id: str, **changes: Any) -> StoreSnapshot:
        """Update fields of a staff member.

        Args:
            staff_id: Id of the member.
            **changes: Any of ``name``, ``role_id``, ``lunch_shift``,
                ``dinner_shift``, ``is_active``.

        Raises:
            StaffNotFoundError: Unknown id.
            StaffValidationError: Invalid field value or unknown field.
        """
        current = self._snapshot.get_staff(staff_id)
        if current is None:
            raise StaffNotFoundError(f"Staff member not found: {staff_id}")

        fields = {}
        for key, value in changes.items():
            if key == "name":
                fields["name"] = validate_staff_name(
                    value, self._snapshot.staff, exclude_id=staff_id
                )
            elif key == "role_id":
                fields["role"] = self._validate_role(value)
            elif key == "lunch_shift":
                fields["lunch_shift"] = validate_shift(value, "Lunch shift")
            elif key == "dinner_shift":
                fields["dinner_shift"] = validate_shift(value, "Dinner shift")
            elif key == "is_active":
                fields["is_active"] = bool(value)
            else:
                raise StaffValidationError(f"Unknown staff field: {key}")

        updated = replace(current, **fields)
        self._snapshot = replace(self._snapshot, staff=tuple(
            updated if member.id == staff_id else member
            for member in self._snapshot.staff
        ))
        self._persist("update staff member", "save_staff", updated)
        return self._snapshot

    def remove_staff(self, staff_id: str) -> StoreSnapshot:
        """Remove a staff member; saved calculations keep their copy.

        Raises:
            StaffNotFoundError: Unknown id.
        """
        if self._snapshot.get_staff(staff_id) is None:
            raise StaffNotFoundError(f"Staff member not found: {staff_id}")
        self._snapshot = replace(self._snapshot, staff=tuple(
            member for member in self._snapshot.staff if member.id != staff_id
        ))
        self._persist("delete staff member", "delete_staff", staff_id)
        return self._snapshot

    # ================================================================
    # History commands
    # ================================================================

    def add_calculation(self, calculation: TipCalculation) -> StoreSnapshot:
        self._snapshot = replace(
            self._snapshot,
            calculations=self._snapshot.calculations + (calculation,),
        )
        self._persist("save calculation", "save_calculation", calculation)
        return self._snapshot

    def update_calculation(self, calculation: TipCalculation) -> StoreSnapshot:
        """Replace a saved calculation with the same id.

        Raises:
            CalculationNotFoundError: No calculation with this id.
        """
        if self._snapshot.get_calculation(calculation.id) is None:
            raise CalculationNotFoundError(f"Calculation not found: {calculation.id}")
        self._snapshot = replace(self._snapshot, calculations=tuple(
            calculation if calc.id == calculation.id else calc
            for calc in self._snapshot.calculations
        ))
        self._persist("update calculation", "save_calculation", calculation)
        return self._snapshot

    def remove_calculation(self, calculation_id: str) -> StoreSnapshot:
        """Delete a saved calculation.

        Raises:
            CalculationNotFoundError: No calculation with this id.
        """
        if self._snapshot.get_calculation(calculation_id) is None:
            raise CalculationNotFoundError(f"Calculation not found: {calculation_id}")
        self._snapshot = replace(self._snapshot, calculations=tuple(
            calc for calc in self._snapshot.calculations if calc.id != calculation_id
        ))
        self._persist(
            "delete calculation", "delete_calculation", calculation_id
        )
        return self._snapshot

    # ================================================================
    # Calculation
    # ================================================================

    def _select(self, staff_ids: Iterable[str]) -> List[Staff]:
        selected = []
        for staff_id in staff_ids:
            member = self._snapshot.get_staff(staff_id)
            if member is None:
                logger.debug(f"Skipping unknown staff id {staff_id}")
                continue
            selected.append(member)
        return selected

    def calculate(self, total_amount: Union[Decimal, float, int, str],
                  staff_ids: Iterable[str],
                  meal_period: Union[MealPeriod, str]) -> DistributionResult:
        """Run the distribution engine for the selected staff.

        Unknown staff ids are skipped. Call again whenever the amount, the
        selection or the meal period changes.

        Raises:
            InvalidAmountError: total_amount is not a positive number.
        """
        amount = validate_amount(total_amount)
        return calculate_tips(
            amount, self._select(staff_ids), MealPeriod(meal_period), self.config
        )

    def save_calculation(self, total_amount: Union[Decimal, float, int, str],
                         staff_ids: Iterable[str],
                         meal_period: Union[MealPeriod, str],
                         date: Optional[datetime] = None) -> TipCalculation:
        """Calculate and add the result to the history.

        Returns:
            The saved TipCalculation.

        Raises:
            InvalidAmountError: total_amount is not a positive number.
            EmptySelectionError: Nobody received a payout line.
        """
        meal_period = MealPeriod(meal_period)
        amount = validate_amount(total_amount)
        result = self.calculate(amount, staff_ids, meal_period)
        if result.is_empty:
            raise EmptySelectionError("Select at least one staff member in a tip pool")

        calculation = TipCalculation.from_result(
            generate_calculation_id(), result, amount, meal_period, date
        )
        self.add_calculation(calculation)
        logger.info(
            f"Saved {meal_period.value} calculation {calculation.id} "
            f"({len(calculation.staff_members)} staff)"
        )
        return calculation
