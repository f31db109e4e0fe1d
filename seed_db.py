"""
Database seeding script for the challenge journal.
Creates a demo user and the 100 Days of Gratitude challenge with its prompts.
Usage: python seed_db.py [--reset]
"""

import os
import sys

# Add the parent directory to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app import create_app
from models import db, User, Challenge, ChallengePrompt
from progress_engine import is_review_unit


GRATITUDE_TITLE = '100 Days of Gratitude'

# Rotated across the 100 days; review days get no prompt
GRATITUDE_PROMPTS = [
    ('Psalm 107:1', 'Give thanks to the Lord, for he is good; his love endures forever.',
     'What is one good thing from yesterday you have not yet given thanks for?'),
    ('1 Thessalonians 5:18', 'Give thanks in all circumstances.',
     'Name a hard circumstance and one thing in it you can be grateful for.'),
    ('Philippians 4:6', 'In every situation, by prayer and petition, with thanksgiving...',
     'Write a prayer that begins with thanks before it asks.'),
    ('Colossians 3:15', 'Let the peace of Christ rule in your hearts... And be thankful.',
     'Where did you notice peace this week?'),
    ('James 1:17', 'Every good and perfect gift is from above.',
     'List three small gifts you received today.'),
    ('Psalm 100:4', 'Enter his gates with thanksgiving and his courts with praise.',
     'Who is someone you can thank today, and how?'),
]


def check_if_seeded():
    """Check if database has already been seeded"""
    return Challenge.query.filter_by(title=GRATITUDE_TITLE).first() is not None


def seed_gratitude_challenge(total_days=100, review_interval=7):
    """Seed the gratitude challenge and its daily prompts"""
    if check_if_seeded():
        print("[SKIP] Gratitude challenge already exists")
        return None

    challenge = Challenge(
        title=GRATITUDE_TITLE,
        description='A guided journey of daily thanksgiving.',
        total_days=total_days,
        theme='gratitude',
        weekly_schedule=False,
        is_active=True,
    )
    db.session.add(challenge)
    db.session.flush()

    count = 0
    for day in range(1, total_days + 1):
        if is_review_unit(day, review_interval):
            continue
        reference, scripture, prompt = GRATITUDE_PROMPTS[(day - 1) % len(GRATITUDE_PROMPTS)]
        db.session.add(ChallengePrompt(
            challenge_id=challenge.id,
            challenge_number=day,
            scripture_reference=reference,
            scripture_text=scripture,
            context_text=f'Day {day}: ==slow down== and read the verse twice before writing.',
            morning_prompt=prompt,
            evening_reflection='Where did you see this today?',
        ))
        count += 1

    db.session.commit()
    print(f"[OK] Seeded '{GRATITUDE_TITLE}' with {count} prompts")
    return challenge


def seed_demo_user():
    """Seed a demo user"""
    if User.query.filter_by(username='demo').first():
        print("[SKIP] Demo user already exists")
        return False

    user = User(
        username='demo',
        email='demo@example.com'
    )
    user.set_password('demo123')
    db.session.add(user)
    db.session.commit()

    print("[OK] Created demo user")
    print("     Username: demo")
    print("     Password: demo123")
    return True


def seed_all(app):
    print("\n=== Seeding Database ===\n")
    seed_gratitude_challenge(
        total_days=app.config['DEFAULT_TOTAL_DAYS'],
        review_interval=app.config['REVIEW_INTERVAL'],
    )
    seed_demo_user()
    print("\n=== Seeding Complete ===\n")


def reset_and_seed(app):
    """Delete the seeded challenge and reseed (dangerous!)"""
    print("\n=== RESETTING AND RESEEDING DATABASE ===\n")
    print("[WARN] This will delete the gratitude challenge and its prompts!")

    confirm = input("Type 'yes' to confirm: ")
    if confirm.lower() != 'yes':
        print("[ABORT] Reset cancelled")
        return False

    challenge = Challenge.query.filter_by(title=GRATITUDE_TITLE).first()
    if challenge:
        db.session.delete(challenge)
        db.session.commit()
    print("[OK] Cleared existing challenge data")

    seed_all(app)
    return True


if __name__ == '__main__':
    app = create_app()

    with app.app_context():
        # Check for --reset flag
        if len(sys.argv) > 1 and sys.argv[1] == '--reset':
            reset_and_seed(app)
        else:
            if check_if_seeded():
                print("\n[INFO] Database appears to be already seeded.")
                print("[INFO] Run with --reset flag to reset and reseed.\n")
            seed_all(app)
