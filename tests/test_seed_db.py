"""Tests for the seeding script."""

from models import Challenge, ChallengePrompt, User
from seed_db import seed_gratitude_challenge, seed_demo_user, seed_all, GRATITUDE_TITLE


def test_review_days_get_no_prompt(app):
    challenge = seed_gratitude_challenge(total_days=14)

    numbers = [p.challenge_number for p in ChallengePrompt.query.filter_by(challenge_id=challenge.id)]
    assert len(numbers) == 12
    assert 7 not in numbers and 14 not in numbers


def test_seeding_twice_is_skipped(app):
    assert seed_gratitude_challenge(total_days=14) is not None
    assert seed_gratitude_challenge(total_days=14) is None
    assert Challenge.query.filter_by(title=GRATITUDE_TITLE).count() == 1


def test_demo_user(app):
    assert seed_demo_user() is True
    assert seed_demo_user() is False
    assert User.query.filter_by(username='demo').one().check_password('demo123')


def test_seed_all_uses_config(app):
    seed_all(app)
    challenge = Challenge.query.filter_by(title=GRATITUDE_TITLE).one()
    assert challenge.total_days == app.config['DEFAULT_TOTAL_DAYS']
