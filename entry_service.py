"""
Journal entry service: saving, clearing and offline completion of entries.

Every write that can change completion is followed by a progress write-back
so the enrollment snapshot follows the entries.
"""
import logging
from datetime import datetime

from models import db, ChallengeEntry, ChallengePrompt, EntryType
from progress_engine import clamp_unit, unit_date
from challenge_service import get_enrollment, calculate_progress, EnrollmentCompletedError

logger = logging.getLogger(__name__)


def _writable_enrollment(enrollment_id):
    enrollment = get_enrollment(enrollment_id)
    if enrollment is None:
        logger.warning(f"Enrollment {enrollment_id} not found")
        return None
    if enrollment.completed:
        raise EnrollmentCompletedError('This challenge is already completed.')
    return enrollment


def get_entry(enrollment_id, unit_number):
    return ChallengeEntry.query.filter_by(
        user_challenge_id=enrollment_id, challenge_number=unit_number
    ).first()


def _upsert_entry(enrollment, unit_number, **fields):
    """Fetch-then-insert-or-update keyed by (enrollment, day)"""
    entry = get_entry(enrollment.id, unit_number)
    if entry is None:
        entry = ChallengeEntry(
            user_challenge_id=enrollment.id,
            challenge_number=unit_number,
            completed_offline=False,
        )
        db.session.add(entry)

    for name, value in fields.items():
        setattr(entry, name, value)
    entry.updated_at = datetime.utcnow()

    db.session.commit()
    return entry


def save_entry(enrollment_id, unit_number, entry_type, content, completed_offline=None, today=None):
    """Store text for one field of a day's entry.

    Blank content is ignored and returns None. ``completed_offline`` is only
    changed when passed explicitly.
    """
    entry_type = EntryType.parse(entry_type)
    if content is not None and not isinstance(content, str):
        raise ValueError(f'Entry content must be text, not {type(content).__name__}')
    if not content or not content.strip():
        logger.debug(f"Ignoring empty {entry_type.value} save for enrollment {enrollment_id}")
        return None

    enrollment = _writable_enrollment(enrollment_id)
    if enrollment is None:
        return None

    unit = clamp_unit(unit_number, enrollment.total_days)
    fields = {entry_type.column: content}
    if completed_offline is not None:
        fields['completed_offline'] = bool(completed_offline)

    entry = _upsert_entry(enrollment, unit, **fields)
    logger.info(f"Saved {entry_type.value} for enrollment {enrollment.id} day {unit}")

    calculate_progress(enrollment, today)
    return entry


def clear_entry_field(enrollment_id, unit_number, entry_type, today=None):
    """Blank out one text field; may withdraw the day's completion"""
    entry_type = EntryType.parse(entry_type)
    enrollment = _writable_enrollment(enrollment_id)
    if enrollment is None:
        return None

    unit = clamp_unit(unit_number, enrollment.total_days)
    if get_entry(enrollment.id, unit) is None:
        return None

    entry = _upsert_entry(enrollment, unit, **{entry_type.column: None})
    logger.info(f"Cleared {entry_type.value} for enrollment {enrollment.id} day {unit}")

    calculate_progress(enrollment, today)
    return entry


def mark_offline_complete(enrollment_id, unit_number, today=None):
    """Mark a day done without any text"""
    enrollment = _writable_enrollment(enrollment_id)
    if enrollment is None:
        return None

    unit = clamp_unit(unit_number, enrollment.total_days)
    entry = _upsert_entry(enrollment, unit, completed_offline=True)
    logger.info(f"Marked enrollment {enrollment.id} day {unit} completed offline")

    calculate_progress(enrollment, today)
    return entry


def add_review_notes(enrollment_id, unit_number, review_notes):
    """Attach weekly-review notes to a day; completion is unaffected"""
    enrollment = get_enrollment(enrollment_id)
    if enrollment is None:
        logger.warning(f"Enrollment {enrollment_id} not found")
        return None

    unit = clamp_unit(unit_number, enrollment.total_days)
    return _upsert_entry(enrollment, unit, review_notes=review_notes)


def get_weekly_review(enrollment_id, week_end_unit):
    """Rows for the six days before a review day, with their prompts"""
    enrollment = get_enrollment(enrollment_id)
    if enrollment is None:
        return None

    first = max(1, week_end_unit - 6)
    entries = {
        e.challenge_number: e for e in ChallengeEntry.query.filter(
            ChallengeEntry.user_challenge_id == enrollment.id,
            ChallengeEntry.challenge_number >= first,
            ChallengeEntry.challenge_number < week_end_unit,
        ).all()
    }
    prompts = {
        p.challenge_number: p for p in ChallengePrompt.query.filter(
            ChallengePrompt.challenge_id == enrollment.challenge_id,
            ChallengePrompt.challenge_number >= first,
            ChallengePrompt.challenge_number < week_end_unit,
        ).all()
    }

    rows = []
    for unit in range(first, week_end_unit):
        entry = entries.get(unit)
        prompt = prompts.get(unit)
        rows.append({
            'day_number': unit,
            'date': unit_date(enrollment.start_date, unit).isoformat(),
            'morning_entry': entry.morning_entry if entry else None,
            'evening_entry': entry.evening_entry if entry else None,
            'review_notes': entry.review_notes if entry else None,
            'scripture_reference': prompt.scripture_reference if prompt else None,
            'morning_prompt': prompt.morning_prompt if prompt else None,
        })
    return rows
