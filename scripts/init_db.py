"""Initialize the database"""
import argparse
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import DatabaseManager
from business import TipStore
from config.pool_config import pool_config
from loguru import logger

# Demo roster: (name, role id, lunch hours, dinner hours)
DEMO_STAFF = [
    ("Ana Souza", "waiter", "6", "6"),
    ("Bruno Lima", "waiter", "3", "6"),
    ("Carla Dias", "gaucho", "6", "4.5"),
    ("Diego Rocha", "bar", "6", "6"),
    ("Elisa Melo", "head-floor", "0", "6"),
    ("Felipe Nunes", "busser", "6", "6"),
    ("Gabriela Reis", "gourmet-table", "3", "6"),
]


def init_database(database_url=None, demo=False):
    """Create tables, apply schema upgrades and optionally add a demo roster"""
    logger.info("Initializing database...")

    db = DatabaseManager(database_url)

    logger.info("Creating tables...")
    db.create_tables()

    version = db.upgrade_schema()
    logger.info(f"Schema version: {version}")

    for role_id in pool_config.unmapped_roles():
        logger.warning(f"Role {role_id!r} is not assigned to any tip pool")

    if demo:
        store = TipStore(db)
        store.load()
        if store.snapshot.staff:
            logger.info("Roster is not empty, skipping demo staff")
        else:
            for name, role_id, lunch, dinner in DEMO_STAFF:
                store.add_staff(name, role_id, lunch_shift=lunch, dinner_shift=dinner)

    db.close()
    logger.info("Database initialization completed!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialize the tip pool database")
    parser.add_argument("--db", default=None, help="Database URL (default: DATABASE_URL)")
    parser.add_argument("--demo", action="store_true", help="Add a demo roster")
    args = parser.parse_args()
    init_database(args.db, args.demo)
