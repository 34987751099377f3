"""
Apply the Bookshelf schema.

This script applies the SQL files in migrations/ in name order to the database
configured by DATABASE_URL (or the Cloud SQL settings). No version tracking:
every file must be safe to re-run.
"""

import sys
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from bookshelf.db import DatabaseConnection
from bookshelf.utils.logging import setup_logging

# Load environment variables
load_dotenv()

# Configure logging early
setup_logging("bookshelf-migrations")

# Migration directory
MIGRATIONS_DIR = Path(__file__).parent.parent / "migrations"


def run_migration(migration_file: Path, engine: Engine):
    """Run a single migration file using SQLAlchemy."""
    print(f"📝 Running migration: {migration_file.name}")

    sql = migration_file.read_text()

    try:
        with engine.begin() as conn:
            # Execute the SQL migration within a transaction
            conn.execute(text(sql))
        print(f"✅ Migration {migration_file.name} completed successfully")
    except SQLAlchemyError as e:
        print(f"❌ Migration {migration_file.name} failed: {e}")
        sys.exit(1)


def list_migrations():
    """List all available migration files."""
    return sorted(MIGRATIONS_DIR.glob("*.sql"))


def main():
    """Main function."""
    print("🚀 Bookshelf Database Migration Tool")
    print("=" * 50)

    if not MIGRATIONS_DIR.exists():
        print(f"❌ Migrations directory not found: {MIGRATIONS_DIR}")
        sys.exit(1)

    # Check for specific migration file argument
    if len(sys.argv) > 1:
        migration_file = Path(sys.argv[1])
        if not migration_file.exists():
            # Try relative to migrations directory
            migration_file = MIGRATIONS_DIR / sys.argv[1]
        if not migration_file.exists():
            print(f"❌ Migration file not found: {sys.argv[1]}")
            sys.exit(1)
        migrations = [migration_file]
    else:
        migrations = list_migrations()

    if not migrations:
        print("⚠️  No migrations found")
        sys.exit(0)

    print(f"\nFound {len(migrations)} migration(s):")
    for migration in migrations:
        print(f"  - {migration.name}")

    try:
        db = DatabaseConnection.from_env()
    except ValueError as e:
        print(f"❌ {e}")
        sys.exit(1)

    print(f"\n🔌 Connecting to {db.engine.url.render_as_string(hide_password=True)}")

    print("\n" + "=" * 50)
    try:
        for migration in migrations:
            run_migration(migration, db.engine)
    finally:
        db.close()

    print("\n" + "=" * 50)
    print("✅ All migrations completed successfully!")


if __name__ == "__main__":
    main()
