"""Shared fixtures.

Provides a fresh temp-file SQLite DatabaseManager for each test and
helpers to build roster entries.
"""
import os
import shutil
import tempfile
from decimal import Decimal

import pytest

from database import DatabaseManager
from tipping.models import Staff
from tipping.roles import resolve_role


def make_staff(staff_id, role_id, dinner="6", lunch="6", name=None, is_active=True):
    """Helper: build a Staff entry with shift hours given as strings."""
    return Staff(
        id=staff_id,
        name=name or f"Staff {staff_id}",
        role=resolve_role(role_id),
        lunch_shift=Decimal(lunch),
        dinner_shift=Decimal(dinner),
        is_active=is_active,
    )


@pytest.fixture
def temp_db():
    """Yield a fresh DatabaseManager bound to a temp SQLite database."""
    temp_dir = tempfile.mkdtemp(prefix="tip-pool-tests-")
    db_path = os.path.join(temp_dir, "test.db")
    manager = DatabaseManager(database_url=f"sqlite:///{db_path}")
    manager.create_tables()

    try:
        yield manager
    finally:
        manager.close()
        shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def temp_db_url():
    """Yield a SQLite URL in a temp directory without creating anything."""
    temp_dir = tempfile.mkdtemp(prefix="tip-pool-tests-")
    try:
        yield f"sqlite:///{os.path.join(temp_dir, 'test.db')}"
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)
