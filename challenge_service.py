"""
Challenge and enrollment service.

Starts challenges, finds a user's active enrollments and keeps the
enrollment's progress snapshot in sync with its entries. Entry rows are the
source of truth; the snapshot columns on ``user_challenges`` are recomputed
from them and written back on every call to ``calculate_progress``.
"""
import logging
from datetime import date

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import (
    db, Challenge, ChallengePrompt, UserChallenge, ChallengeEntry,
    SCHEDULE_TYPES, EMPTY_ENTRY
)
from progress_engine import summarize_entries, DEFAULT_REVIEW_INTERVAL

logger = logging.getLogger(__name__)


class ChallengeError(Exception):
    """Base error for challenge operations"""
    status_code = 400


class ChallengeNotFoundError(ChallengeError):
    status_code = 404


class DuplicateEnrollmentError(ChallengeError):
    status_code = 409


class EnrollmentCompletedError(ChallengeError):
    status_code = 409


def review_interval():
    return current_app.config.get('REVIEW_INTERVAL', DEFAULT_REVIEW_INTERVAL)


# ========== CATALOGUE ==========

def get_challenges():
    """Active challenges, newest first"""
    return Challenge.query.filter_by(is_active=True).order_by(
        Challenge.created_at.desc(), Challenge.id.desc()
    ).all()


def get_all_challenges():
    """All challenges including inactive ones (admin view)"""
    return Challenge.query.order_by(Challenge.created_at.desc(), Challenge.id.desc()).all()


def get_challenge_by_title(title):
    return Challenge.query.filter_by(title=title, is_active=True).first()


# ========== ENROLLMENTS ==========

def get_enrollment(enrollment_id):
    return db.session.get(UserChallenge, enrollment_id)


def get_current_challenge(user_id):
    """Most recently started enrollment that is not completed, or None"""
    return UserChallenge.query.filter_by(user_id=user_id, completed=False).order_by(
        UserChallenge.start_date.desc(), UserChallenge.id.desc()
    ).first()


def get_all_active_challenges(user_id):
    return UserChallenge.query.filter_by(user_id=user_id, completed=False).order_by(
        UserChallenge.start_date.desc(), UserChallenge.id.desc()
    ).all()


def start_challenge(challenge_id, schedule_type, user_id, today=None):
    """Enroll a user in a challenge.

    Only one non-completed enrollment per (user, challenge) is allowed.
    """
    if schedule_type not in SCHEDULE_TYPES:
        raise ValueError(f'Unknown schedule type: {schedule_type!r}')

    challenge = db.session.get(Challenge, challenge_id)
    if challenge is None or not challenge.is_active:
        raise ChallengeNotFoundError('Challenge not found.')

    existing = UserChallenge.query.filter_by(
        user_id=user_id, challenge_id=challenge_id, completed=False
    ).first()
    if existing:
        raise DuplicateEnrollmentError('You already have this challenge active.')

    enrollment = UserChallenge(
        user_id=user_id,
        challenge_id=challenge_id,
        schedule_type=schedule_type,
        start_date=today or date.today(),
        current_challenge_number=1,
        total_completed=0,
        current_streak=0,
        longest_streak=0,
        completed=False,
        weekly_review_day=0,
        weekly_goal=5,
    )
    db.session.add(enrollment)
    db.session.commit()

    logger.info(f"Started challenge {challenge.title!r} for user {user_id} (enrollment {enrollment.id})")
    return enrollment


# ========== PROGRESS ==========

def load_entries(enrollment_id):
    return ChallengeEntry.query.filter_by(user_challenge_id=enrollment_id).order_by(
        ChallengeEntry.challenge_number
    ).all()


def build_snapshot(enrollment, entries, today=None):
    """Aggregate entries without touching the database"""
    today = today or date.today()
    challenge = enrollment.challenge
    strategy = challenge.schedule_strategy(review_interval())
    possible = strategy.units_possible(enrollment.start_date, today, challenge.total_days)
    return summarize_entries(
        entries, challenge.total_days, units_possible=possible, bridges=strategy.bridges_streak
    )


def write_back(enrollment, snapshot):
    """Persist the snapshot; failures are logged and never raised.

    The row's version column makes a write based on stale data fail instead
    of silently overwriting a newer snapshot.
    """
    enrollment_id = enrollment.id
    try:
        enrollment.apply_snapshot(snapshot)
        db.session.commit()
        return True
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(f"Failed to write back progress for enrollment {enrollment_id}")
        return False


def calculate_progress(enrollment, today=None):
    """Recompute progress from persisted entries and store it on the enrollment"""
    snapshot = build_snapshot(enrollment, load_entries(enrollment.id), today)
    write_back(enrollment, snapshot)
    return snapshot


def get_current_unit(enrollment, today=None):
    """Unit active today under the challenge's schedule"""
    challenge = enrollment.challenge
    strategy = challenge.schedule_strategy(review_interval())
    return strategy.current_unit(
        enrollment.start_date, today or date.today(),
        enrollment.total_completed or 0, challenge.total_days
    )


def get_prompt(challenge_id, unit_number):
    prompt = ChallengePrompt.query.filter_by(
        challenge_id=challenge_id, challenge_number=unit_number
    ).first()
    if prompt is None:
        logger.warning(f"No prompt for challenge {challenge_id} day {unit_number}")
    return prompt


def get_todays_content(enrollment_id, today=None):
    """Everything the 'today' page needs, or None when the enrollment is missing"""
    enrollment = get_enrollment(enrollment_id)
    if enrollment is None:
        logger.warning(f"Enrollment {enrollment_id} not found")
        return None

    today = today or date.today()
    challenge = enrollment.challenge
    strategy = challenge.schedule_strategy(review_interval())
    start_date = enrollment.start_date
    review_day = enrollment.weekly_review_day or 0

    entries = load_entries(enrollment.id)
    snapshot = build_snapshot(enrollment, entries, today)

    unit = strategy.current_unit(start_date, today, snapshot.total_completed, challenge.total_days)
    review = strategy.is_review(unit, today, review_day)
    prompt = None if review else get_prompt(challenge.id, unit)
    entry = None
    if strategy.review_shows_entry or not review:
        entry = next((e for e in entries if e.challenge_number == unit), None)

    content = {
        'unit_number': unit,
        'is_review_unit': review,
        'week_number': strategy.week_number(start_date, today, unit),
        'schedule': strategy.name,
        'prompt': prompt.to_dict() if prompt else None,
        'entry': entry.to_dict() if entry else dict(EMPTY_ENTRY),
        'progress': snapshot.to_dict(),
    }

    write_back(enrollment, snapshot)
    return content
