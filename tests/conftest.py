"""Pytest configuration and fixtures."""

from datetime import date

import pytest

from app import create_app
from models import db, User, Challenge, ChallengePrompt
import challenge_service


# A Sunday
START = date(2026, 1, 4)


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(username='alice', password='secret'):
        user = User(username=username, email=f'{username}@example.com')
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def make_challenge(app):
    def _make(title='100 Days of Gratitude', total_days=100, weekly_schedule=False,
              with_prompts=True, is_active=True, theme='gratitude'):
        challenge = Challenge(
            title=title,
            total_days=total_days,
            weekly_schedule=weekly_schedule,
            is_active=is_active,
            theme=theme,
        )
        db.session.add(challenge)
        db.session.flush()
        if with_prompts:
            for day in range(1, total_days + 1):
                if day % 7 == 0:
                    continue
                db.session.add(ChallengePrompt(
                    challenge_id=challenge.id,
                    challenge_number=day,
                    scripture_reference=f'Psalm {day}:1',
                    context_text=f'Read **Psalm {day}** slowly.',
                    morning_prompt=f'What are you thankful for on day {day}?',
                ))
        db.session.commit()
        return challenge
    return _make


@pytest.fixture
def challenge(make_challenge):
    return make_challenge()


@pytest.fixture
def enroll(user):
    def _enroll(challenge, start_date=START, schedule_type='morning', user_id=None):
        return challenge_service.start_challenge(
            challenge.id, schedule_type, user_id or user.id, today=start_date
        )
    return _enroll


@pytest.fixture
def enrollment(enroll, challenge):
    return enroll(challenge)
