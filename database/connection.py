"""Database connection and infrastructure.

This module owns the low-level database plumbing:
- engine creation (SQLite by default, any SQLAlchemy URL works)
- session management
- table creation

It contains no tip pooling logic.
"""
from pathlib import Path
from typing import Optional
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session

from .models import Base
from config.settings import settings


class DatabaseConnection:
    """Database connection manager.

    Creates the engine and hands out sessions. The tip store works
    synchronously, so only a synchronous engine is created.

    Attributes:
        database_url: Database connection URL.
        engine: SQLAlchemy engine.
        SessionLocal: Session factory.

    Example:
        ```python
        # SQLite file
        conn = DatabaseConnection("sqlite:///data/tips.db")

        # Default from settings
        conn = DatabaseConnection()
        ```
    """

    def __init__(self, database_url: Optional[str] = None) -> None:
        """Initialize the database connection.

        Args:
            database_url: Database URL; None uses ``settings.database_url``.
                For a file-based SQLite URL the parent directory is created.
        """
        self.database_url: str = database_url or settings.database_url

        if self.database_url.startswith("sqlite"):
            db_path = make_url(self.database_url).database
            if db_path and db_path != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_engine(
                self.database_url,
                echo=False,
                connect_args={"check_same_thread": False}
            )
        else:
            self.engine = create_engine(self.database_url, echo=False)

        self.SessionLocal = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False
        )

    def create_tables(self) -> None:
        """Create every table defined in models.py.

        Tables that already exist are left alone (idempotent).
        """
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        """Return a new database session."""
        return self.SessionLocal()

    def close(self) -> None:
        """Dispose of the engine and release pooled connections.

        The connection must not be used after this call.
        """
        if self.engine is not None:
            self.engine.dispose()
