"""Tip distribution engine.

Splits one shift's cash tips between two pools and then between the staff
in each pool:

1. Partition staff by role into pool 1 (97%) and pool 2 (3%); roles that
   belong to no pool are left out.
2. Clamp each shift to ``[0, FULL_SHIFT_UNIT]`` and hand the hours that
   part-timers did not work to the full-shift members of the same pool.
3. Pay each member ``pool_amount * effective_shift / pool_total_shift``.
4. Round pool 1 down unless the fraction is at least 0.85; round pool 2 up.
5. Report what pool 1 rounding kept back and what pool 2 rounding added.

Every function here is pure: no I/O, no shared state.
"""
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Union

from loguru import logger

from config.pool_config import PoolConfig, pool_config
from tipping.models import (
    CENT, FULL_SHIFT_UNIT, ZERO,
    CalculationStaff, DistributionResult, MealPeriod, Pool, Staff, to_decimal,
)

# Rounding granularity: payouts are whole currency units
ROUNDING_UNIT = Decimal("1")

# Pool 1 only rounds up when the fraction of a unit reaches this value
POOL1_ROUND_UP_THRESHOLD = Decimal("0.85")


def clamp_shift(value: Union[Decimal, float, int, str],
                full_shift_unit: Decimal = FULL_SHIFT_UNIT) -> Decimal:
    """Clamp a raw shift value to ``[0, full_shift_unit]``."""
    return min(max(to_decimal(value), ZERO), full_shift_unit)


def _shift_weights(clamped: Sequence[Decimal],
                   full_shift_unit: Decimal) -> List[Decimal]:
    """Return effective shifts scaled by the number of full-shift members.

    Scaling keeps the arithmetic exact (no division), while the ratios
    between members are the same as for the effective shifts.
    """
    full_count = sum(1 for value in clamped if value == full_shift_unit)
    if not full_count:
        return list(clamped)

    shortfall = sum(
        (full_shift_unit - value for value in clamped if value < full_shift_unit),
        ZERO,
    )
    return [
        value * full_count + shortfall if value == full_shift_unit
        else value * full_count
        for value in clamped
    ]


def redistribute_shift_shortfall(shifts: Iterable[Union[Decimal, float, int, str]],
                                 full_shift_unit: Decimal = FULL_SHIFT_UNIT
                                 ) -> List[Decimal]:
    """Return the effective shift of each member of one pool.

    Shifts are clamped first. The shortfall (hours under-full members did
    not work) is split evenly between the full-shift members; under-full
    members keep their clamped value. Without a full-shift member nothing
    is redistributed.

    Args:
        shifts: Raw shift values of the pool members, in order.
        full_shift_unit: Value of a complete shift.

    Returns:
        Effective shift values in the same order.

    Example::

        >>> redistribute_shift_shortfall([6, 3])
        [Decimal('9'), Decimal('3')]
    """
    clamped = [clamp_shift(value, full_shift_unit) for value in shifts]
    full_count = sum(1 for value in clamped if value == full_shift_unit)
    weights = _shift_weights(clamped, full_shift_unit)
    if not full_count:
        return weights
    return [weight / full_count for weight in weights]


def round_pool_amount(amount: Union[Decimal, float, int, str], pool: Pool,
                      unit: Decimal = ROUNDING_UNIT) -> Decimal:
    """Round a raw payout with the rule of its pool.

    Pool 1 rounds up only when the fractional part of a unit is at least
    ``POOL1_ROUND_UP_THRESHOLD`` and otherwise rounds down. Pool 2 always
    rounds up.

    Args:
        amount: Raw payout.
        pool: Pool the payout belongs to.
        unit: Rounding granularity.

    Returns:
        Rounded payout, quantized to cents.
    """
    units = to_decimal(amount) / unit
    if pool == Pool.POOL2:
        rounded = units.to_integral_value(rounding=ROUND_CEILING)
    else:
        whole = units.to_integral_value(rounding=ROUND_FLOOR)
        rounded = whole + 1 if units - whole >= POOL1_ROUND_UP_THRESHOLD else whole
    return (rounded * unit).quantize(CENT)


def _distribute_pool(pool: Pool, pool_amount: Decimal, members: List[Staff],
                     meal_period: MealPeriod,
                     full_shift_unit: Decimal) -> List[CalculationStaff]:
    clamped = [clamp_shift(member.shift_for(meal_period), full_shift_unit)
               for member in members]
    weights = _shift_weights(clamped, full_shift_unit)
    total_weight = sum(weights, ZERO)

    lines = []
    for member, shift_value, weight in zip(members, clamped, weights):
        if total_weight > ZERO:
            raw_amount = pool_amount * weight / total_weight
        else:
            raw_amount = ZERO
        lines.append(CalculationStaff(
            staff_id=member.id,
            staff_name=member.name,
            role=member.role,
            shift_value=shift_value,
            tip_amount=round_pool_amount(raw_amount, pool),
            pool=pool,
        ))
    return lines


def calculate_tips(total_amount: Union[Decimal, float, int, str],
                   staff: Iterable[Staff],
                   meal_period: Union[MealPeriod, str],
                   config: Optional[PoolConfig] = None,
                   full_shift_unit: Decimal = FULL_SHIFT_UNIT) -> DistributionResult:
    """Distribute a shift's tips between the given staff.

    The caller validates ``total_amount > 0``. An empty staff list is a
    valid "nothing to distribute" state and yields an empty result. Staff
    whose role belongs to no pool get no line and add nothing to any pool.

    Args:
        total_amount: Cash tips for the shift.
        staff: Selected staff members, in display order.
        meal_period: Which shift value of each member to use.
        config: Pool layout; defaults to the global ``pool_config``.
        full_shift_unit: Value of a complete shift.

    Returns:
        Payout lines (pool 1 first, then pool 2, each in input order),
        the undistributed amount, and the nominal pool 2 amount with its
        rounding overage.
    """
    config = config or pool_config
    staff = list(staff)
    if not staff:
        return DistributionResult()

    total_amount = to_decimal(total_amount)
    meal_period = MealPeriod(meal_period)
    shares = config.get_pool_shares()

    members: Dict[Pool, List[Staff]] = {Pool.POOL1: [], Pool.POOL2: []}
    for member in staff:
        pool_name = config.pool_for_role(member.role.id)
        if not pool_name:
            logger.debug(
                f"Staff {member.name!r} has role {member.role.id!r} outside every pool, skipped"
            )
            continue
        members[Pool(pool_name)].append(member)

    lines: List[CalculationStaff] = []
    for pool in (Pool.POOL1, Pool.POOL2):
        pool_amount = total_amount * shares[pool.value]
        lines.extend(_distribute_pool(
            pool, pool_amount, members[pool], meal_period, full_shift_unit
        ))

    distributed = sum((line.tip_amount for line in lines), ZERO)
    pool2_distributed = sum(
        (line.tip_amount for line in lines if line.pool == Pool.POOL2), ZERO
    )
    pool2_base = total_amount * shares[Pool.POOL2.value]
    pool2_extra = pool2_distributed - pool2_base if pool2_distributed > ZERO else ZERO

    return DistributionResult(
        calculation_staff=tuple(lines),
        undistributed_amount=max(ZERO, total_amount - distributed),
        pool2_base_amount=pool2_base,
        pool2_extra_amount=pool2_extra,
    )
