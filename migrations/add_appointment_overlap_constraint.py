"""
Add the double-booking exclusion constraint to the appointments table

Migration to add (PostgreSQL only):
- btree_gist extension
- ends_at backfill for rows written before the column was populated
- appointments_no_overlap: no two live appointments of one staff member
  may share any instant of [scheduled_at, ends_at)

Fresh databases get the constraint from create_all; this migration is for
databases created before it existed.

Run with: python migrations/add_appointment_overlap_constraint.py
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import text

from barberflow.database import engine

CONSTRAINT_NAME = "appointments_no_overlap"


def upgrade():
    """Add the overlap exclusion constraint"""
    if engine.dialect.name != "postgresql":
        print(f"ℹ️  {engine.dialect.name} has no exclusion constraints, nothing to do")
        return

    with engine.connect() as conn:
        conn.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist"))
        print("✅ btree_gist extension available")

        result = conn.execute(
            text("""
            UPDATE appointments
            SET ends_at = scheduled_at + make_interval(mins => duration_minutes)
            WHERE ends_at IS NULL
               OR ends_at <> scheduled_at + make_interval(mins => duration_minutes)
        """)
        )
        print(f"✅ Backfilled ends_at on {result.rowcount} appointment(s)")

        # Check if the constraint already exists to make migration idempotent
        existing = conn.execute(
            text("SELECT 1 FROM pg_constraint WHERE conname = :name"),
            {"name": CONSTRAINT_NAME},
        ).first()

        if not existing:
            conn.execute(
                text(f"""
                ALTER TABLE appointments
                ADD CONSTRAINT {CONSTRAINT_NAME}
                EXCLUDE USING gist (
                    staff_id WITH =,
                    tsrange(scheduled_at, ends_at, '[)') WITH &&
                )
                WHERE (status NOT IN ('cancelled', 'no_show'))
            """)
            )
            print(f"✅ Added {CONSTRAINT_NAME} constraint")
        else:
            print(f"ℹ️  {CONSTRAINT_NAME} constraint already exists")

        conn.commit()
        print("\n✅ Migration completed successfully!")


def downgrade():
    """Remove the overlap exclusion constraint"""
    if engine.dialect.name != "postgresql":
        return

    with engine.connect() as conn:
        conn.execute(text(f"ALTER TABLE appointments DROP CONSTRAINT IF EXISTS {CONSTRAINT_NAME}"))
        conn.commit()
        print("✅ Migration rolled back successfully!")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Manage the appointment overlap constraint migration")
    parser.add_argument("--down", action="store_true", help="Rollback the migration")
    args = parser.parse_args()

    if args.down:
        print("Rolling back migration...")
        downgrade()
    else:
        print("Running migration...")
        upgrade()
