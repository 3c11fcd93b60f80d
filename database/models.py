"""SQLAlchemy ORM model definitions.

Tables:
- staff: the roster
- tip_calculations / calculation_lines: the saved calculation history
- schema_versions: applied schema versions, see ``database.migrations``
"""
from typing import List, Optional
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime,
    DECIMAL, ForeignKey
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship
from datetime import datetime
from decimal import Decimal

# SQLAlchemy declarative base, every model inherits from it.
# __allow_unmapped__ keeps the plain (non-Mapped) annotations below valid on SQLAlchemy 2.0
Base = declarative_base()

Base.__allow_unmapped__ = True


class StaffMember(Base):
    """Roster table model.

    Attributes:
        id: Primary key, string id chosen by the store.
        name: Staff name, required, max 50 characters.
        role_id: Role catalog id (waiter / busser / ...), max 30 characters.
        lunch_shift: Lunch shift, DECIMAL(5,2). Hours from schema version 2 on,
            percent of a full shift before.
        dinner_shift: Dinner shift, same unit as lunch_shift.
        is_active: Active flag, default True.
        created_at: Creation time, set to the current UTC time.
    """
    __tablename__ = "staff"

    id: str = Column(String(36), primary_key=True)
    name: str = Column(String(50), nullable=False)
    role_id: str = Column(String(30), nullable=False)
    lunch_shift: Decimal = Column(DECIMAL(5, 2), nullable=False, default=0)
    dinner_shift: Decimal = Column(DECIMAL(5, 2), nullable=False, default=0)
    is_active: bool = Column(Boolean, default=True)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)


class TipCalculationRecord(Base):
    """Saved calculation table model.

    Attributes:
        id: Primary key, time-based id from ``generate_calculation_id``.
        date: Date and time the tips belong to.
        meal_period: lunch / dinner.
        total_tip_amount: Amount that was split, DECIMAL(10,2).
        undistributed_amount: Amount kept back by pool 1 rounding.
        pool2_base_amount: Nominal pool 2 amount.
        pool2_extra_amount: Pool 2 rounding overage.
        created_at: Creation time, set to the current UTC time.

    Relationships:
        lines: Payout lines in display order; deleted with the record.
    """
    __tablename__ = "tip_calculations"

    id: str = Column(String(32), primary_key=True)
    date: datetime = Column(DateTime, nullable=False, index=True)
    meal_period: str = Column(String(10), nullable=False)  # lunch / dinner
    total_tip_amount: Decimal = Column(DECIMAL(10, 2), nullable=False)
    undistributed_amount: Decimal = Column(DECIMAL(10, 2), default=0)
    pool2_base_amount: Decimal = Column(DECIMAL(12, 4), default=0)
    pool2_extra_amount: Decimal = Column(DECIMAL(12, 4), default=0)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)

    # Relationships
    lines: List["CalculationLine"] = relationship(
        "CalculationLine",
        back_populates="calculation",
        cascade="all, delete-orphan",
        order_by="CalculationLine.position",
    )


class CalculationLine(Base):
    """Payout line table model.

    Staff and role data are copied into the line, so history stays intact
    after a staff member is edited or removed.

    Attributes:
        id: Primary key, auto-increment integer.
        calculation_id: Parent calculation, foreign key to tip_calculations.
        position: Order of the line within its calculation.
        staff_id: Staff id at calculation time.
        staff_name: Staff name at calculation time.
        role_id / role_name / role_color: Role at calculation time.
        shift_value: Clamped shift hours used for the share.
        tip_amount: Rounded payout, DECIMAL(10,2).
        pool: pool1 / pool2.
    """
    __tablename__ = "calculation_lines"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    calculation_id: str = Column(
        String(32), ForeignKey("tip_calculations.id", ondelete="CASCADE"), nullable=False
    )
    position: int = Column(Integer, nullable=False, default=0)
    staff_id: str = Column(String(36), nullable=False)
    staff_name: str = Column(String(50), nullable=False)
    role_id: str = Column(String(30), nullable=False)
    role_name: str = Column(String(50), nullable=False)
    role_color: Optional[str] = Column(String(10))
    shift_value: Decimal = Column(DECIMAL(5, 2), nullable=False)
    tip_amount: Decimal = Column(DECIMAL(10, 2), nullable=False)
    pool: str = Column(String(10), nullable=False)  # pool1 / pool2

    # Relationships
    calculation: Optional["TipCalculationRecord"] = relationship(
        "TipCalculationRecord", back_populates="lines"
    )


class SchemaVersion(Base):
    """Applied schema versions; the highest row is the current version.

    Attributes:
        id: Primary key, auto-increment integer.
        version: Schema version number.
        applied_at: Time the version was stamped.
    """
    __tablename__ = "schema_versions"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    version: int = Column(Integer, nullable=False)
    applied_at: datetime = Column(DateTime, default=datetime.utcnow)
