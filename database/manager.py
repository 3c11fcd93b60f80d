"""Database manager - single facade over the database package.

DatabaseManager is the entry point of the database package. It combines
the repositories and offers two APIs:

1. **Repository access** (fine grained):
   ``db.staff``, ``db.calculations`` and ``db.schema`` return ORM objects.

2. **Domain methods** (coarse grained):
   ``load_staff()``, ``save_calculation()`` and friends take and return the
   frozen dataclasses from ``tipping.models``; this is what the store uses.
"""
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from sqlalchemy.orm import Session

from tipping.models import (
    DEFAULT_ROLE_COLOR, CalculationStaff, MealPeriod, Pool, Staff, StaffRole,
    TipCalculation, to_decimal,
)
from tipping.roles import resolve_role
from .connection import DatabaseConnection
from .entity_repos import StaffRepository
from .business_repos import CalculationRepository
from .system_repos import SchemaRepository
from .models import StaffMember, TipCalculationRecord
from . import legacy_import, migrations


def staff_to_dict(staff: Staff) -> Dict[str, Any]:
    return {
        "id": staff.id,
        "name": staff.name,
        "role_id": staff.role.id,
        "lunch_shift": staff.lunch_shift,
        "dinner_shift": staff.dinner_shift,
        "is_active": staff.is_active,
    }


def staff_from_row(row: StaffMember) -> Staff:
    return Staff(
        id=row.id,
        name=row.name,
        role=resolve_role(row.role_id),
        lunch_shift=to_decimal(row.lunch_shift),
        dinner_shift=to_decimal(row.dinner_shift),
        is_active=bool(row.is_active),
    )


def calculation_to_dict(calculation: TipCalculation) -> Dict[str, Any]:
    return {
        "id": calculation.id,
        "date": calculation.date,
        "meal_period": calculation.meal_period.value,
        "total_tip_amount": calculation.total_tip_amount,
        "undistributed_amount": calculation.undistributed_amount,
        "pool2_base_amount": calculation.pool2_base_amount,
        "pool2_extra_amount": calculation.pool2_extra_amount,
        "lines": [
            {
                "staff_id": line.staff_id,
                "staff_name": line.staff_name,
                "role_id": line.role.id,
                "role_name": line.role.name,
                "role_color": line.role.color,
                "shift_value": line.shift_value,
                "tip_amount": line.tip_amount,
                "pool": line.pool.value,
            }
            for line in calculation.staff_members
        ],
    }


def calculation_from_row(row: TipCalculationRecord) -> TipCalculation:
    lines = tuple(
        CalculationStaff(
            staff_id=line.staff_id,
            staff_name=line.staff_name,
            role=StaffRole(id=line.role_id, name=line.role_name,
                           color=line.role_color or DEFAULT_ROLE_COLOR),
            shift_value=to_decimal(line.shift_value),
            tip_amount=to_decimal(line.tip_amount),
            pool=Pool(line.pool),
        )
        for line in row.lines
    )
    return TipCalculation(
        id=row.id,
        date=row.date,
        meal_period=MealPeriod(row.meal_period),
        total_tip_amount=to_decimal(row.total_tip_amount),
        staff_members=lines,
        undistributed_amount=to_decimal(row.undistributed_amount or 0),
        pool2_base_amount=to_decimal(row.pool2_base_amount or 0),
        pool2_extra_amount=to_decimal(row.pool2_extra_amount or 0),
    )


class DatabaseManager:
    """Database manager - single facade.

    Attributes:
        conn: Database connection manager.
        staff: Staff roster repository.
        calculations: Calculation history repository.
        schema: Schema version repository.

    Example::

        db = DatabaseManager("sqlite:///data/tips.db")
        db.create_tables()
        db.upgrade_schema()

        # Repository access (ORM objects)
        member = db.staff.get_by_id(StaffMember, "abc")

        # Domain access (dataclasses)
        roster = db.load_staff()
    """

    def __init__(self, database_url: Optional[str] = None) -> None:
        """Initialize the database manager.

        Args:
            database_url: Database URL. None uses the settings value.
        """
        # Infrastructure
        self.conn = DatabaseConnection(database_url)

        # Repositories
        self.staff = StaffRepository(self.conn)
        self.calculations = CalculationRepository(self.conn)
        self.schema = SchemaRepository(self.conn)

    # ================================================================
    # Infrastructure
    # ================================================================

    def create_tables(self) -> None:
        """Create all tables (idempotent).

        A database without a schema version is new and is stamped with
        the current version.
        """
        self.conn.create_tables()
        if self.schema.current_version() == 0:
            self.schema.stamp(migrations.CURRENT_SCHEMA_VERSION)

    def upgrade_schema(self, target: Optional[int] = None) -> int:
        """Apply pending schema upgrade steps; returns the resulting version."""
        return migrations.upgrade(self.conn, self.schema, target)

    @property
    def schema_version(self) -> int:
        return self.schema.current_version()

    def get_session(self) -> Session:
        """Return a new database session."""
        return self.conn.get_session()

    @property
    def database_url(self) -> str:
        """Database connection URL."""
        return self.conn.database_url

    @property
    def engine(self):
        """SQLAlchemy engine."""
        return self.conn.engine

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()

    # ================================================================
    # Roster
    # ================================================================

    def load_staff(self, active_only: bool = False) -> List[Staff]:
        """Return the roster as Staff dataclasses."""
        with self.get_session() as session:
            if active_only:
                rows = self.staff.get_active_staff(session=session)
            else:
                rows = self.staff.get_all_staff(session=session)
            return [staff_from_row(row) for row in rows]

    def save_staff(self, staff: Staff) -> None:
        """Insert or update one staff member."""
        self.staff.save(staff_to_dict(staff))

    def delete_staff(self, staff_id: str) -> bool:
        return self.staff.delete(staff_id)

    # ================================================================
    # Calculation history
    # ================================================================

    def load_calculations(self, limit: Optional[int] = None) -> List[TipCalculation]:
        """Return saved calculations, newest first."""
        with self.get_session() as session:
            rows = self.calculations.get_all_calculations(limit=limit, session=session)
            return [calculation_from_row(row) for row in rows]

    def load_calculation(self, calculation_id: str) -> Optional[TipCalculation]:
        with self.get_session() as session:
            row = self.calculations.get(calculation_id, session=session)
            return calculation_from_row(row) if row else None

    def save_calculation(self, calculation: TipCalculation) -> None:
        """Insert a calculation, or replace the stored one with the same id."""
        self.calculations.save(calculation_to_dict(calculation))

    def delete_calculation(self, calculation_id: str) -> bool:
        return self.calculations.delete(calculation_id)

    # ================================================================
    # Legacy data
    # ================================================================

    def import_legacy_file(self, path: Union[str, Path]) -> Dict[str, int]:
        """Import a legacy JSON blob file into this (empty) database."""
        return legacy_import.import_legacy_state(
            self, legacy_import.load_legacy_file(path)
        )
