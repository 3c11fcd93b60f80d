"""Versioned schema upgrades.

The schema version lives in the ``schema_versions`` table. Every upgrade
step moves the data one version forward and is applied in order inside a
single transaction.

Versions:
    1: staff shift values stored as percent of a full shift (0-100)
    2: staff shift values stored as hours (0-FULL_SHIFT_UNIT)
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Optional

from loguru import logger
from sqlalchemy.orm import Session

from tipping.models import FULL_SHIFT_UNIT, to_decimal
from .connection import DatabaseConnection
from .models import StaffMember
from .system_repos import SchemaRepository

CURRENT_SCHEMA_VERSION = 2

# A full shift in the version 1 unit
LEGACY_FULL_SHIFT_PERCENT = Decimal("100")


def percent_to_hours(value) -> Decimal:
    """Convert a percent-of-full-shift value to hours, rounded to one decimal."""
    hours = to_decimal(value) / LEGACY_FULL_SHIFT_PERCENT * FULL_SHIFT_UNIT
    return hours.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def _upgrade_to_v2(session: Session) -> None:
    """Convert staff shift values from percent to hours."""
    members = session.query(StaffMember).all()
    for member in members:
        member.lunch_shift = percent_to_hours(member.lunch_shift)
        member.dinner_shift = percent_to_hours(member.dinner_shift)
    logger.info(f"Converted shift values of {len(members)} staff members to hours")


# Target version -> step that upgrades from the version before it
UPGRADE_STEPS: Dict[int, Callable[[Session], None]] = {
    2: _upgrade_to_v2,
}


def upgrade(conn: DatabaseConnection, schema: SchemaRepository,
            target: Optional[int] = None) -> int:
    """Upgrade the database to ``target`` (default: the current version).

    Args:
        conn: Database connection.
        schema: Schema version repository.
        target: Version to upgrade to.

    Returns:
        The schema version after the upgrade.

    Raises:
        ValueError: The database was never stamped with a version, or a
            step for a required version is missing.
    """
    target = target or CURRENT_SCHEMA_VERSION
    with conn.get_session() as session:
        version = schema.current_version(session=session)
        if version == 0:
            raise ValueError("Database has no schema version; call create_tables() first")
        if version >= target:
            if version > target:
                logger.warning(
                    f"Database schema version {version} is newer than {target}"
                )
            return version

        for next_version in range(version + 1, target + 1):
            step = UPGRADE_STEPS.get(next_version)
            if step is None:
                raise ValueError(f"No upgrade step to schema version {next_version}")
            logger.info(f"Upgrading schema {next_version - 1} -> {next_version}")
            step(session)
            schema.stamp(next_version, session=session)
        session.commit()
    return target
