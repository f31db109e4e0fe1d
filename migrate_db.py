"""
Database migration script for the challenge journal.
Adds columns introduced after the first release to existing databases.
Run: python migrate_db.py
"""

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app import create_app
from models import db

MIGRATIONS = [
    # Optimistic lock for the progress snapshot
    ("ALTER TABLE user_challenges ADD COLUMN version INTEGER NOT NULL DEFAULT 1", "user_challenges.version"),

    # Weekly schedule settings
    ("ALTER TABLE user_challenges ADD COLUMN weekly_review_day INTEGER DEFAULT 0", "user_challenges.weekly_review_day"),
    ("ALTER TABLE user_challenges ADD COLUMN weekly_goal INTEGER DEFAULT 5", "user_challenges.weekly_goal"),
    ("ALTER TABLE challenges ADD COLUMN weekly_schedule BOOLEAN DEFAULT 0", "challenges.weekly_schedule"),
    ("ALTER TABLE challenges ADD COLUMN theme VARCHAR(50) DEFAULT 'gratitude'", "challenges.theme"),

    # Review notes on entries
    ("ALTER TABLE challenge_entries ADD COLUMN review_notes TEXT", "challenge_entries.review_notes"),
]


def migrate(app=None):
    """Run database migrations; returns the descriptions that were applied"""
    print("\n=== Running Database Migrations ===\n")

    app = app or create_app()
    applied = []

    with app.app_context():
        # Get raw connection for executing ALTER TABLE
        connection = db.engine.raw_connection()
        cursor = connection.cursor()

        for sql, description in MIGRATIONS:
            try:
                cursor.execute(sql)
                connection.commit()
                applied.append(description)
                print(f"[OK] Added {description}")
            except Exception as e:
                connection.rollback()
                if "duplicate column" in str(e).lower() or "already exists" in str(e).lower():
                    print(f"[SKIP] {description} already exists")
                else:
                    print(f"[SKIP] {description}: {str(e)[:50]}")

        cursor.close()
        connection.close()

        # Create new tables if they don't exist
        print("\n[INFO] Creating new tables if they don't exist...")
        db.create_all()
        print("[OK] All tables created/verified")

        print("\n=== Migration Complete ===\n")

    return applied

if __name__ == '__main__':
    migrate()
