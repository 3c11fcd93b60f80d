"""TipStore tests.

Tests for:
- roster commands: add_staff, update_staff, remove_staff
- history commands: add/update/remove_calculation, save_calculation
- calculate: on-demand recomputation over the snapshot
- persistence: write-through, reload, failures logged and swallowed
"""
from dataclasses import replace
from datetime import datetime
from decimal import Decimal

import pytest
from loguru import logger
from sqlalchemy.exc import OperationalError

from business import StoreSnapshot, TipStore
from config.pool_config import AdegaPoolConfig
from tipping.exceptions import (
    CalculationNotFoundError, EmptySelectionError, InvalidAmountError,
    StaffNotFoundError, StaffValidationError,
)
from tipping.models import FULL_SHIFT_UNIT, MealPeriod, Pool


@pytest.fixture
def store():
    """In-memory store without a database."""
    return TipStore()


@pytest.fixture
def db_store(temp_db):
    return TipStore(temp_db)


def add(store, name, role_id, **shifts):
    snapshot = store.add_staff(name, role_id, **shifts)
    return snapshot.staff[-1]


class BrokenDatabase:
    """Stand-in database whose writes always fail."""

    def _fail(self, *args):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    save_staff = delete_staff = save_calculation = delete_calculation = _fail
    load_staff = load_calculations = _fail


# ============================================================
# Roster commands
# ============================================================
class TestRosterCommands:

    def test_add_staff_defaults_to_full_shifts(self, store):
        member = add(store, "Ana", "waiter")
        assert member.lunch_shift == FULL_SHIFT_UNIT
        assert member.dinner_shift == FULL_SHIFT_UNIT
        assert member.is_active is True
        assert member.role.name == "Waiter"

    def test_add_staff_returns_new_snapshot(self, store):
        before = store.snapshot
        after = store.add_staff("Ana", "waiter")

        assert before.staff == ()
        assert len(after.staff) == 1
        assert store.snapshot is after

    def test_add_staff_generates_unique_ids(self, store):
        first = add(store, "Ana", "waiter")
        second = add(store, "Bruno", "waiter")
        assert first.id != second.id

    def test_add_staff_validates(self, store):
        add(store, "Ana", "waiter")
        with pytest.raises(StaffValidationError, match="already exists"):
            store.add_staff("ANA", "bar")
        with pytest.raises(StaffValidationError, match="Unknown role"):
            store.add_staff("Bruno", "sommelier")
        with pytest.raises(StaffValidationError, match="Dinner shift"):
            store.add_staff("Bruno", "bar", dinner_shift="7")
        assert len(store.snapshot.staff) == 1

    def test_update_staff(self, store):
        member = add(store, "Ana", "waiter")
        store.update_staff(member.id, name="Ana Souza", role_id="bar",
                           dinner_shift="4.5", is_active=False)

        updated = store.snapshot.get_staff(member.id)
        assert updated.name == "Ana Souza"
        assert updated.role.id == "bar"
        assert updated.dinner_shift == Decimal("4.5")
        assert updated.lunch_shift == member.lunch_shift
        assert updated.is_active is False

    def test_update_staff_keeps_own_name(self, store):
        member = add(store, "Ana", "waiter")
        store.update_staff(member.id, name="ana")
        assert store.snapshot.get_staff(member.id).name == "ana"

    def test_update_unknown_staff(self, store):
        with pytest.raises(StaffNotFoundError):
            store.update_staff("missing", name="Ana")

    def test_update_unknown_field(self, store):
        member = add(store, "Ana", "waiter")
        with pytest.raises(StaffValidationError, match="Unknown staff field"):
            store.update_staff(member.id, nickname="A")

    def test_remove_staff(self, store):
        member = add(store, "Ana", "waiter")
        store.remove_staff(member.id)
        assert store.snapshot.staff == ()
        with pytest.raises(StaffNotFoundError):
            store.remove_staff(member.id)


# ============================================================
# Snapshot queries
# ============================================================
class TestSnapshotQueries:

    def test_active_staff(self, store):
        add(store, "Ana", "waiter")
        add(store, "Bruno", "bar", is_active=False)
        assert [m.name for m in store.snapshot.active_staff()] == ["Ana"]

    def test_search_staff(self, store):
        add(store, "Ana Souza", "waiter")
        add(store, "Bruno Lima", "bar")
        add(store, "Carla Souza", "bar")

        snapshot = store.snapshot
        assert [m.name for m in snapshot.search_staff("souza")] == ["Ana Souza", "Carla Souza"]
        assert [m.name for m in snapshot.search_staff(role_id="bar")] == ["Bruno Lima", "Carla Souza"]
        assert [m.name for m in snapshot.search_staff("souza", "bar")] == ["Carla Souza"]
        assert len(snapshot.search_staff()) == 3

    def test_snapshot_is_frozen(self, store):
        with pytest.raises(AttributeError):
            store.snapshot.staff = ()


# ============================================================
# Calculation
# ============================================================
class TestCalculate:

    def test_calculate_selected_staff(self, store):
        ana = add(store, "Ana", "waiter")
        bruno = add(store, "Bruno", "gaucho")
        add(store, "Carla", "bar")

        result = store.calculate("100.00", [ana.id, bruno.id], MealPeriod.DINNER)
        assert [line.tip_amount for line in result.calculation_staff] == [
            Decimal("48.00"), Decimal("48.00"),
        ]
        assert result.undistributed_amount == Decimal("4.00")

    def test_calculate_uses_meal_period(self, store):
        ana = add(store, "Ana", "waiter", lunch_shift="3")
        bruno = add(store, "Bruno", "waiter")

        result = store.calculate("100", [ana.id, bruno.id], "lunch")
        assert result.calculation_staff[0].tip_amount == Decimal("24.00")

    def test_recalculates_after_roster_change(self, store):
        ana = add(store, "Ana", "waiter")
        bruno = add(store, "Bruno", "waiter")
        ids = [ana.id, bruno.id]

        before = store.calculate("100", ids, "dinner")
        store.update_staff(ana.id, dinner_shift="3")
        after = store.calculate("100", ids, "dinner")

        assert before.calculation_staff[0].tip_amount == Decimal("48.00")
        assert after.calculation_staff[0].tip_amount == Decimal("24.00")

    def test_unknown_ids_skipped(self, store):
        ana = add(store, "Ana", "waiter")
        result = store.calculate("100", ["missing", ana.id], "dinner")
        assert [line.staff_id for line in result.calculation_staff] == [ana.id]

    def test_invalid_amount(self, store):
        with pytest.raises(InvalidAmountError):
            store.calculate("0", [], "dinner")

    def test_save_calculation(self, store):
        ana = add(store, "Ana", "waiter")
        felipe = add(store, "Felipe", "busser")
        when = datetime(2026, 10, 17, 20, 0)

        calculation = store.save_calculation("100.00", [ana.id, felipe.id], "dinner", when)

        assert calculation.date == when
        assert calculation.total_tip_amount == Decimal("100.00")
        assert calculation.pool_total(Pool.POOL2) == Decimal("3.00")
        assert store.snapshot.get_calculation(calculation.id) == calculation

    def test_save_calculation_without_lines(self, store):
        with pytest.raises(EmptySelectionError):
            store.save_calculation("100", [], "dinner")
        with pytest.raises(EmptySelectionError):
            store.save_calculation("100", ["missing"], "dinner")
        assert store.snapshot.calculations == ()


# ============================================================
# History commands
# ============================================================
class TestHistoryCommands:

    def test_history_newest_first(self, store):
        ana = add(store, "Ana", "waiter")
        store.save_calculation("100", [ana.id], "dinner", datetime(2026, 10, 16, 20, 0))
        store.save_calculation("80", [ana.id], "lunch", datetime(2026, 10, 18, 13, 0))
        store.save_calculation("90", [ana.id], "dinner", datetime(2026, 10, 17, 20, 0))

        totals = [calc.total_tip_amount for calc in store.snapshot.history()]
        assert totals == [Decimal("80"), Decimal("90"), Decimal("100")]

    def test_update_calculation(self, store):
        ana = add(store, "Ana", "waiter")
        calculation = store.save_calculation("100", [ana.id], "dinner")

        store.update_calculation(replace(calculation, meal_period=MealPeriod.LUNCH))
        assert store.snapshot.get_calculation(calculation.id).meal_period == MealPeriod.LUNCH
        assert len(store.snapshot.calculations) == 1

    def test_update_unknown_calculation(self, store):
        ana = add(store, "Ana", "waiter")
        calculation = store.save_calculation("100", [ana.id], "dinner")
        store.remove_calculation(calculation.id)

        with pytest.raises(CalculationNotFoundError):
            store.update_calculation(calculation)
        with pytest.raises(CalculationNotFoundError):
            store.remove_calculation(calculation.id)

    def test_removing_staff_keeps_history(self, store):
        ana = add(store, "Ana", "waiter")
        calculation = store.save_calculation("100", [ana.id], "dinner")
        store.remove_staff(ana.id)

        kept = store.snapshot.get_calculation(calculation.id)
        assert kept.staff_members[0].staff_name == "Ana"


# ============================================================
# Persistence
# ============================================================
class TestPersistence:

    def test_changes_reach_database(self, db_store, temp_db):
        ana = add(db_store, "Ana", "waiter")
        calculation = db_store.save_calculation("100", [ana.id], "dinner")

        reloaded = TipStore(temp_db).load()
        assert reloaded.staff == db_store.snapshot.staff
        assert [calc.id for calc in reloaded.calculations] == [calculation.id]

    def test_load_orders_history_oldest_first(self, db_store, temp_db):
        ana = add(db_store, "Ana", "waiter")
        db_store.save_calculation("100", [ana.id], "dinner", datetime(2026, 10, 16, 20, 0))
        db_store.save_calculation("90", [ana.id], "dinner", datetime(2026, 10, 17, 20, 0))

        reloaded = TipStore(temp_db).load()
        assert [calc.total_tip_amount for calc in reloaded.calculations] == [
            Decimal("100"), Decimal("90"),
        ]
        assert reloaded.history()[0].total_tip_amount == Decimal("90")

    def test_removals_reach_database(self, db_store, temp_db):
        ana = add(db_store, "Ana", "waiter")
        calculation = db_store.save_calculation("100", [ana.id], "dinner")
        db_store.remove_calculation(calculation.id)
        db_store.remove_staff(ana.id)

        assert temp_db.load_staff() == []
        assert temp_db.load_calculations() == []

    def test_saved_calculation_loads_back_unchanged(self, db_store, temp_db):
        ana = add(db_store, "Ana", "waiter", dinner_shift="4.555")
        felipe = add(db_store, "Felipe", "busser")
        calculation = db_store.save_calculation(
            "100.126", [ana.id, felipe.id], "dinner", datetime(2026, 10, 17, 20, 0)
        )

        assert calculation.total_tip_amount == Decimal("100.13")
        assert temp_db.load_calculation(calculation.id) == calculation
        assert temp_db.load_staff() == list(db_store.snapshot.staff)

    def test_write_failure_is_logged_not_raised(self):
        messages = []
        handler_id = logger.add(messages.append, level="ERROR")
        try:
            store = TipStore(BrokenDatabase())
            member = add(store, "Ana", "waiter")
        finally:
            logger.remove(handler_id)

        assert store.snapshot.get_staff(member.id) is not None
        assert any("Failed to save staff member" in str(m) for m in messages)

    def test_load_failure_keeps_snapshot(self):
        initial = StoreSnapshot()
        store = TipStore(BrokenDatabase(), snapshot=initial)
        assert store.load() is initial

    def test_in_memory_load_is_noop(self, store):
        assert store.load() is store.snapshot


class TestConfigurationWarning:

    def test_unmapped_role_warning(self):
        class ExtraRoleConfig(AdegaPoolConfig):
            def get_roles(self):
                return super().get_roles() + [
                    {"id": "dishwasher", "name": "Dishwasher", "color": "#795548"},
                ]

        messages = []
        handler_id = logger.add(messages.append, level="WARNING")
        try:
            store = TipStore(config=ExtraRoleConfig())
        finally:
            logger.remove(handler_id)

        assert any("dishwasher" in str(m) for m in messages)
        # The role can be assigned but never receives tips
        member = add(store, "Dora", "dishwasher")
        assert store.calculate("100", [member.id], "dinner").is_empty
