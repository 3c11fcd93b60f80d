"""Domain data structures for tip pooling.

Core concepts:
- StaffRole: a role tag from the fixed catalog; its id decides pool membership
- Staff: one roster entry with lunch/dinner shift hours
- CalculationStaff: one payout line produced by the distribution engine
- DistributionResult: everything the engine returns for one call
- TipCalculation: a saved distribution event in the history

All records are frozen; changing one means building a new instance with
``dataclasses.replace``. Money and shift values are ``Decimal``.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Tuple

from config.pool_config import POOL1, POOL2

ZERO = Decimal("0")
CENT = Decimal("0.01")

DEFAULT_ROLE_COLOR = "#9E9E9E"

# Hours in a complete lunch or dinner shift
FULL_SHIFT_UNIT = Decimal("6")


def to_decimal(value: Any) -> Decimal:
    """Convert an int, float, str or Decimal to Decimal.

    Floats go through ``str`` so that 0.1 becomes Decimal("0.1") rather
    than its binary expansion.

    Raises:
        decimal.InvalidOperation: The value is not a number.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


class MealPeriod(Enum):
    """Meal period a tip pool belongs to"""
    LUNCH = "lunch"
    DINNER = "dinner"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Pool(Enum):
    """Tip pool a payout line was paid from"""
    POOL1 = POOL1
    POOL2 = POOL2


@dataclass(frozen=True)
class StaffRole:
    """Role tag from the catalog.

    Attributes:
        id: Stable identifier (e.g. ``waiter``), decides pool membership
        name: Display name
        color: Display color as a hex string
    """
    id: str
    name: str
    color: str = DEFAULT_ROLE_COLOR


@dataclass(frozen=True)
class Staff:
    """Roster entry.

    Attributes:
        id: Unique staff identifier
        name: Display name
        role: Role tag
        lunch_shift: Hours worked at lunch, 0 to FULL_SHIFT_UNIT
        dinner_shift: Hours worked at dinner, 0 to FULL_SHIFT_UNIT
        is_active: Inactive staff stay in the roster but are not offered for selection
    """
    id: str
    name: str
    role: StaffRole
    lunch_shift: Decimal = FULL_SHIFT_UNIT
    dinner_shift: Decimal = FULL_SHIFT_UNIT
    is_active: bool = True

    def shift_for(self, meal_period: MealPeriod) -> Decimal:
        """Return the raw shift value for a meal period."""
        if meal_period == MealPeriod.LUNCH:
            return self.lunch_shift
        return self.dinner_shift


@dataclass(frozen=True)
class CalculationStaff:
    """Payout line for one staff member in one calculation.

    Attributes:
        staff_id: Id of the staff member at calculation time
        staff_name: Name of the staff member at calculation time
        role: Role at calculation time
        shift_value: Clamped shift hours actually used for the share
        tip_amount: Rounded payout
        pool: Pool the payout came from
    """
    staff_id: str
    staff_name: str
    role: StaffRole
    shift_value: Decimal
    tip_amount: Decimal
    pool: Pool


@dataclass(frozen=True)
class DistributionResult:
    """Output of one ``calculate_tips`` call.

    Attributes:
        calculation_staff: Pool 1 lines in input order, then pool 2 lines in input order
        undistributed_amount: Money kept back by pool 1 rounding
        pool2_base_amount: Nominal pool 2 amount before rounding
        pool2_extra_amount: Money paid beyond the nominal pool 2 amount
    """
    calculation_staff: Tuple[CalculationStaff, ...] = ()
    undistributed_amount: Decimal = ZERO
    pool2_base_amount: Decimal = ZERO
    pool2_extra_amount: Decimal = ZERO

    @property
    def total_distributed(self) -> Decimal:
        return sum((line.tip_amount for line in self.calculation_staff), ZERO)

    def pool_total(self, pool: Pool) -> Decimal:
        return sum(
            (line.tip_amount for line in self.calculation_staff if line.pool == pool),
            ZERO,
        )

    def lines_for(self, pool: Pool) -> Tuple[CalculationStaff, ...]:
        return tuple(line for line in self.calculation_staff if line.pool == pool)

    @property
    def is_empty(self) -> bool:
        return not self.calculation_staff


@dataclass(frozen=True)
class TipCalculation:
    """Saved distribution event.

    Attributes:
        id: Stable identifier (see ``generate_calculation_id``)
        date: Date and time the tips belong to
        meal_period: Lunch or dinner
        total_tip_amount: Cash amount that was split
        staff_members: Payout lines
        undistributed_amount: Money kept back by pool 1 rounding
        pool2_base_amount: Nominal pool 2 amount
        pool2_extra_amount: Pool 2 overage caused by rounding up
    """
    id: str
    date: datetime
    meal_period: MealPeriod
    total_tip_amount: Decimal
    staff_members: Tuple[CalculationStaff, ...] = field(default_factory=tuple)
    undistributed_amount: Decimal = ZERO
    pool2_base_amount: Decimal = ZERO
    pool2_extra_amount: Decimal = ZERO

    @classmethod
    def from_result(cls, calculation_id: str, result: DistributionResult,
                    total_tip_amount: Decimal, meal_period: MealPeriod,
                    date: Optional[datetime] = None) -> "TipCalculation":
        """Build a history record from an engine result."""
        return cls(
            id=calculation_id,
            date=date or datetime.now(),
            meal_period=meal_period,
            total_tip_amount=total_tip_amount,
            staff_members=result.calculation_staff,
            undistributed_amount=result.undistributed_amount,
            pool2_base_amount=result.pool2_base_amount,
            pool2_extra_amount=result.pool2_extra_amount,
        )

    @property
    def total_distributed(self) -> Decimal:
        return sum((line.tip_amount for line in self.staff_members), ZERO)

    def pool_total(self, pool: Pool) -> Decimal:
        return sum(
            (line.tip_amount for line in self.staff_members if line.pool == pool),
            ZERO,
        )
