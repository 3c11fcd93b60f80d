"""Input validation for amounts, staff form data and meal periods.

These checks run in the store and the CLI before anything reaches the
distribution engine.
"""
import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Union

from tipping.exceptions import InvalidAmountError, StaffValidationError
from tipping.models import CENT, FULL_SHIFT_UNIT, ZERO, MealPeriod, Staff, to_decimal

# Lunch is only served on Friday, Saturday and Sunday (date.weekday numbering)
LUNCH_WEEKDAYS = frozenset({4, 5, 6})


def validate_amount(value: Any) -> Decimal:
    """Return the tip amount as Decimal, rounded to cents.

    Raises:
        InvalidAmountError: The value is missing, not a number or not positive.
    """
    try:
        amount = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError("Please enter a valid amount")
    if not amount.is_finite():
        raise InvalidAmountError("Please enter a valid amount")
    try:
        # Stored amounts have two decimals
        amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmountError("Please enter a valid amount")
    if amount <= ZERO:
        raise InvalidAmountError("Please enter a valid amount")
    return amount


def validate_staff_name(name: str, roster: Iterable[Staff] = (),
                        exclude_id: Optional[str] = None) -> str:
    """Return the trimmed staff name.

    Args:
        name: Name typed by the user.
        roster: Current roster, for the duplicate check.
        exclude_id: Id of the member being edited (may keep its own name).

    Raises:
        StaffValidationError: Empty name, digits in the name, or a
            case-insensitive duplicate of another member.
    """
    cleaned = (name or "").strip()
    if not cleaned:
        raise StaffValidationError("Name is required")
    if re.search(r"\d", cleaned):
        raise StaffValidationError("Name cannot contain numbers")
    for member in roster:
        if member.id != exclude_id and member.name.lower() == cleaned.lower():
            raise StaffValidationError("A staff member with this name already exists")
    return cleaned


def validate_shift(value: Any, label: str = "Shift",
                   full_shift_unit: Decimal = FULL_SHIFT_UNIT) -> Decimal:
    """Return the shift hours as Decimal, rounded to hundredths.

    Raises:
        StaffValidationError: Not a number or outside ``[0, full_shift_unit]``.
    """
    try:
        hours = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise StaffValidationError(f"{label} must be a number")
    if not hours.is_finite() or hours < ZERO or hours > full_shift_unit:
        raise StaffValidationError(
            f"{label} must be between 0 and {full_shift_unit} hours"
        )
    return hours.quantize(CENT, rounding=ROUND_HALF_UP)


def is_lunch_available(day: date) -> bool:
    return day.weekday() in LUNCH_WEEKDAYS


def resolve_meal_period(day: date, requested: Union[MealPeriod, str]) -> MealPeriod:
    """Return the requested meal period, or dinner when no lunch is served that day."""
    meal_period = MealPeriod(requested)
    if meal_period == MealPeriod.LUNCH and not is_lunch_available(day):
        return MealPeriod.DINNER
    return meal_period
