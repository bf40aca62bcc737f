"""
Migration: Add revision column to assigned_indicators table.

Every write to an assigned indicator bumps the revision and can require the
revision it read, so two concurrent uploads or reviews cannot silently
overwrite each other.
"""
from sqlalchemy import create_engine, inspect, text
import os

# Use same DB URL pattern as main app
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./scorecard.db")


def run_migration():
    """Add revision column, starting every existing assignment at 0."""
    engine = create_engine(DATABASE_URL)

    columns = [c["name"] for c in inspect(engine).get_columns("assigned_indicators")]
    if "revision" in columns:
        print("revision column already exists")
        return

    with engine.connect() as conn:
        conn.execute(text("""
            ALTER TABLE assigned_indicators
            ADD COLUMN revision INTEGER NOT NULL DEFAULT 0
        """))
        print("Added revision column to assigned_indicators table")

        conn.commit()


if __name__ == "__main__":
    run_migration()
