"""
Add the staff_work_schedules table

Migration to add:
- staff_work_schedules: one row per working day of a staff member
  (day name, HH:MM start and end, soft-delete flag)

Fresh databases get the table from create_all.

Run with: python migrations/add_staff_work_schedules.py
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import inspect

from barberflow.database import engine
from barberflow.models import StaffWorkSchedule

TABLE = StaffWorkSchedule.__table__


def upgrade():
    """Create the work schedule table"""
    if inspect(engine).has_table(TABLE.name):
        print(f"ℹ️  {TABLE.name} table already exists")
        return

    TABLE.create(bind=engine)
    print(f"✅ Created {TABLE.name} table")
    print("\n✅ Migration completed successfully!")


def downgrade():
    """Drop the work schedule table"""
    TABLE.drop(bind=engine, checkfirst=True)
    print("✅ Migration rolled back successfully!")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Manage the staff work schedule migration")
    parser.add_argument("--down", action="store_true", help="Rollback the migration")
    args = parser.parse_args()

    if args.down:
        print("Rolling back migration...")
        downgrade()
    else:
        print("Running migration...")
        upgrade()
