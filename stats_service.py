"""
Read-only progress reports: month calendar, weekly/monthly breakdowns and
achievements. Numbers are recomputed from entries; nothing is written.
"""
from datetime import date, datetime

from progress_engine import (
    build_calendar, weekly_breakdown, monthly_breakdown, build_achievements
)
from challenge_service import get_enrollment, load_entries, build_snapshot, review_interval


def _progress_context(enrollment, today):
    challenge = enrollment.challenge
    strategy = challenge.schedule_strategy(review_interval())
    entries = load_entries(enrollment.id)
    snapshot = build_snapshot(enrollment, entries, today)
    current_day = strategy.current_unit(
        enrollment.start_date, today, snapshot.total_completed, challenge.total_days
    )
    return entries, snapshot, current_day


def _overall(enrollment, snapshot, current_day):
    return {
        'total_days_completed': snapshot.total_completed,
        'current_streak': snapshot.current_streak,
        'longest_streak': snapshot.longest_streak,
        'completion_rate': snapshot.completion_rate,
        'progress_to_date': snapshot.progress_to_date,
        'current_day': current_day,
        'days_remaining': max(0, enrollment.total_days - current_day + 1),
    }


def get_calendar_data(enrollment_id, month=None, today=None):
    """Calendar for one month ('YYYY-MM'); defaults to the start month early on"""
    enrollment = get_enrollment(enrollment_id)
    if enrollment is None:
        return None

    today = today or date.today()
    entries, snapshot, current_day = _progress_context(enrollment, today)

    if month:
        target = datetime.strptime(month, '%Y-%m').date()
    else:
        target = enrollment.start_date if current_day <= 31 else today

    days = build_calendar(
        enrollment.start_date,
        target.year,
        target.month,
        {e.challenge_number: e for e in entries},
        current_day,
        enrollment.total_days,
    )
    return {
        'month': f'{target.year}-{target.month:02d}',
        'calendar_data': days,
        'stats': _overall(enrollment, snapshot, current_day),
    }


def get_progress_stats(enrollment_id, today=None):
    enrollment = get_enrollment(enrollment_id)
    if enrollment is None:
        return None

    today = today or date.today()
    _, snapshot, current_day = _progress_context(enrollment, today)

    overall = _overall(enrollment, snapshot, current_day)
    overall['start_date'] = enrollment.start_date.isoformat()
    overall['schedule_type'] = enrollment.schedule_type

    return {
        'overall': overall,
        'weekly': weekly_breakdown(snapshot.completed_units, current_day),
        'monthly': monthly_breakdown(enrollment.start_date, snapshot.completed_units),
    }


def get_achievements(enrollment_id, today=None):
    enrollment = get_enrollment(enrollment_id)
    if enrollment is None:
        return []

    today = today or date.today()
    _, snapshot, current_day = _progress_context(enrollment, today)
    return build_achievements(
        current_day,
        snapshot.current_streak,
        snapshot.longest_streak,
        enrollment.total_days,
        enrollment.challenge.theme,
    )
