"""Database package - persistence for the roster and the calculation history

Core components:
- DatabaseManager: single facade (repositories + domain methods)
- DatabaseConnection: engine and session factory
- migrations: versioned schema upgrades
- legacy_import: import of the legacy JSON state blob

Usage:
    ```python
    from database import DatabaseManager

    db = DatabaseManager("sqlite:///data/tips.db")
    db.create_tables()
    db.upgrade_schema()
    roster = db.load_staff()
    ```
"""
from database.connection import DatabaseConnection
from database.manager import DatabaseManager

__all__ = ["DatabaseConnection", "DatabaseManager"]
