"""Schema upgrade tests."""
from decimal import Decimal

import pytest

from database import DatabaseManager
from database.migrations import CURRENT_SCHEMA_VERSION, percent_to_hours
from database.models import SchemaVersion


@pytest.fixture
def v1_db(temp_db_url):
    """Yield a database stamped at schema version 1 (percent shifts)."""
    db = DatabaseManager(temp_db_url)
    db.conn.create_tables()
    db.schema.stamp(1)
    try:
        yield db
    finally:
        db.close()


class TestPercentToHours:

    @pytest.mark.parametrize("percent, hours", [
        (100, "6.0"),
        (50, "3.0"),
        (75, "4.5"),
        (0, "0.0"),
        (33, "2.0"),
        ("12.5", "0.8"),
    ])
    def test_conversion(self, percent, hours):
        assert percent_to_hours(percent) == Decimal(hours)


class TestUpgrade:

    def test_upgrade_converts_staff_shifts(self, v1_db):
        v1_db.staff.save({
            "id": "s1", "name": "Ana", "role_id": "waiter",
            "lunch_shift": 100, "dinner_shift": 75,
        })
        v1_db.staff.save({
            "id": "s2", "name": "Bruno", "role_id": "busser",
            "lunch_shift": 0, "dinner_shift": 50,
        })

        assert v1_db.upgrade_schema() == 2
        assert v1_db.schema_version == 2

        staff = {member.id: member for member in v1_db.load_staff()}
        assert staff["s1"].lunch_shift == Decimal("6")
        assert staff["s1"].dinner_shift == Decimal("4.5")
        assert staff["s2"].lunch_shift == Decimal("0")
        assert staff["s2"].dinner_shift == Decimal("3")

    def test_upgrade_is_idempotent(self, v1_db):
        v1_db.staff.save({
            "id": "s1", "name": "Ana", "role_id": "waiter",
            "lunch_shift": 100, "dinner_shift": 100,
        })
        v1_db.upgrade_schema()
        v1_db.upgrade_schema()

        assert v1_db.load_staff()[0].dinner_shift == Decimal("6")

    def test_fresh_database_needs_no_upgrade(self, temp_db):
        assert temp_db.upgrade_schema() == CURRENT_SCHEMA_VERSION
        with temp_db.get_session() as session:
            assert session.query(SchemaVersion).count() == 1

    def test_create_tables_stamps_once(self, temp_db):
        temp_db.create_tables()
        with temp_db.get_session() as session:
            assert session.query(SchemaVersion).count() == 1

    def test_unstamped_database_rejected(self, temp_db_url):
        db = DatabaseManager(temp_db_url)
        db.conn.create_tables()
        try:
            with pytest.raises(ValueError, match="no schema version"):
                db.upgrade_schema()
        finally:
            db.close()

    def test_missing_step_rejected(self, temp_db):
        with pytest.raises(ValueError, match="No upgrade step"):
            temp_db.upgrade_schema(target=CURRENT_SCHEMA_VERSION + 1)
        assert temp_db.schema_version == CURRENT_SCHEMA_VERSION

    def test_newer_database_left_alone(self, temp_db):
        temp_db.schema.stamp(CURRENT_SCHEMA_VERSION + 1)
        assert temp_db.upgrade_schema() == CURRENT_SCHEMA_VERSION + 1
