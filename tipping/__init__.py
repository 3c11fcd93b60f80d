"""Tip pooling core - distribution engine and its data model

Splits a shift's cash tips between staff by role pool and hours worked.

Core components:
- calculate_tips: the distribution engine (pure function)
- redistribute_shift_shortfall / round_pool_amount: its building blocks
- Staff / StaffRole / CalculationStaff / DistributionResult / TipCalculation

Usage:
    ```python
    from tipping import MealPeriod, calculate_tips

    result = calculate_tips(Decimal("100.00"), selected_staff, MealPeriod.DINNER)
    for line in result.calculation_staff:
        print(line.staff_name, format_currency(line.tip_amount))
    ```
"""
from tipping.distribution import (
    calculate_tips,
    clamp_shift,
    redistribute_shift_shortfall,
    round_pool_amount,
)
from tipping.exceptions import (
    CalculationNotFoundError,
    EmptySelectionError,
    InvalidAmountError,
    StaffNotFoundError,
    StaffValidationError,
    TipPoolError,
)
from tipping.formatting import (
    format_currency,
    format_date,
    format_percentage,
    format_shift,
    generate_calculation_id,
    parse_amount_input,
)
from tipping.models import (
    FULL_SHIFT_UNIT,
    CalculationStaff,
    DistributionResult,
    MealPeriod,
    Pool,
    Staff,
    StaffRole,
    TipCalculation,
)

__all__ = [
    # Engine
    "calculate_tips",
    "clamp_shift",
    "redistribute_shift_shortfall",
    "round_pool_amount",
    # Data model
    "FULL_SHIFT_UNIT",
    "CalculationStaff",
    "DistributionResult",
    "MealPeriod",
    "Pool",
    "Staff",
    "StaffRole",
    "TipCalculation",
    # Helpers
    "format_currency",
    "format_date",
    "format_percentage",
    "format_shift",
    "generate_calculation_id",
    "parse_amount_input",
    # Errors
    "TipPoolError",
    "InvalidAmountError",
    "StaffValidationError",
    "StaffNotFoundError",
    "CalculationNotFoundError",
    "EmptySelectionError",
]
