"""
Progress engine for 100-day challenges.

Pure functions that turn a sparse, unordered set of journal entries into the
progress numbers shown on the dashboard: which day (unit) the user is on,
whether it is a review day, streaks and completion rates. Nothing in here
touches the database; the services load rows and hand them in, so every
function can be called with plain objects carrying the entry attributes.
"""
import calendar
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta


DEFAULT_REVIEW_INTERVAL = 7
DAYS_PER_WEEK = 7

DAY_MILESTONES = [1, 7, 14, 21, 30, 50, 75, 100]
STREAK_MILESTONES = [3, 7, 14, 21, 30]
ACHIEVEMENT_PRIORITY = {'completion': 0, 'special': 1, 'milestone': 2, 'streak': 3}


# ========== DAY / CHALLENGE INDEX RESOLVER ==========

def clamp_unit(unit_number, total_units):
    """Clamp a unit number into [1, total_units]"""
    if total_units < 1:
        return 1
    return max(1, min(int(unit_number), total_units))


def unit_date(start_date, unit_number):
    """Calendar date a unit falls on when one unit is done per day"""
    return start_date + timedelta(days=unit_number - 1)


def unit_for_date(start_date, day):
    """Unclamped unit number of a calendar day (the start date is unit 1)"""
    return (day - start_date).days + 1


def calendar_unit(start_date, today, total_units):
    return clamp_unit(unit_for_date(start_date, today), total_units)


def completion_unit(total_completed, total_units):
    return clamp_unit(total_completed + 1, total_units)


def is_review_unit(unit_number, review_interval=DEFAULT_REVIEW_INTERVAL):
    """True when the unit sits on the periodic review boundary"""
    if not review_interval or review_interval < 1:
        return False
    return unit_number > 0 and unit_number % review_interval == 0


def sunday_weekday(day):
    """Weekday number with Sunday = 0 ... Saturday = 6"""
    return day.isoweekday() % 7


class ScheduleStrategy:
    """How a challenge decides the active unit and its review days"""
    name = None
    # Whether the stored entry is shown on a review unit
    review_shows_entry = True

    def current_unit(self, start_date, today, total_completed, total_units):
        raise NotImplementedError

    def is_review(self, unit_number, today, review_day=0):
        raise NotImplementedError

    def units_possible(self, start_date, today, total_units):
        """Denominator for progress-to-date"""
        raise NotImplementedError

    def week_number(self, start_date, today, unit_number):
        raise NotImplementedError

    def bridges_streak(self, unit_number):
        """True for units a streak may pass over without an entry"""
        return False

    def __repr__(self):
        return f'<{self.__class__.__name__}>'


class DailySchedule(ScheduleStrategy):
    """One unit per calendar day; every Nth unit is a review unit"""
    name = 'daily'
    review_shows_entry = False

    def __init__(self, review_interval=DEFAULT_REVIEW_INTERVAL):
        self.review_interval = review_interval

    def current_unit(self, start_date, today, total_completed, total_units):
        return calendar_unit(start_date, today, total_units)

    def is_review(self, unit_number, today, review_day=0):
        return is_review_unit(unit_number, self.review_interval)

    def units_possible(self, start_date, today, total_units):
        return calendar_unit(start_date, today, total_units)

    def week_number(self, start_date, today, unit_number):
        return max(1, math.ceil(unit_number / DAYS_PER_WEEK))

    def bridges_streak(self, unit_number):
        # Review units have no prompt; leaving one blank does not end a run
        return is_review_unit(unit_number, self.review_interval)


class WeeklySchedule(ScheduleStrategy):
    """Units advance on completion; one weekday is set aside for review.

    Missed calendar days neither skip content forward nor block progress.
    """
    name = 'weekly'

    def current_unit(self, start_date, today, total_completed, total_units):
        return completion_unit(total_completed, total_units)

    def is_review(self, unit_number, today, review_day=0):
        return sunday_weekday(today) == review_day

    def units_possible(self, start_date, today, total_units):
        return total_units

    def week_number(self, start_date, today, unit_number):
        return max(0, (today - start_date).days) // DAYS_PER_WEEK + 1


def get_schedule_strategy(weekly_schedule, review_interval=DEFAULT_REVIEW_INTERVAL):
    if weekly_schedule:
        return WeeklySchedule()
    return DailySchedule(review_interval)


def resolve_current_unit(start_date, today, total_units, strategy=None, total_completed=0):
    """Unit number active today, always inside [1, total_units]"""
    strategy = strategy or DailySchedule()
    return strategy.current_unit(start_date, today, total_completed, total_units)


# ========== PROGRESS AGGREGATOR ==========

def _has_text(value):
    return bool(value and value.strip())


def is_entry_completed(entry):
    """An entry counts once any text field has content or it was done offline"""
    return (
        _has_text(entry.god_message) or
        _has_text(entry.morning_entry) or
        _has_text(entry.evening_entry) or
        bool(entry.completed_offline)
    )


def _joined(previous, number, bridges):
    gap = range(previous + 1, number)
    if not gap:
        return True
    return bridges is not None and all(bridges(unit) for unit in gap)


def calculate_streaks(unit_numbers, bridges=None):
    """Return (current_streak, longest_streak) for a set of completed units.

    The current streak is the run of consecutive units ending at the highest
    completed unit, not at today. ``bridges`` is an optional predicate for
    units that may be missing without breaking a run; they add nothing to
    its length.
    """
    ordered = sorted(set(unit_numbers))
    if not ordered:
        return 0, 0

    longest = run = 1
    for previous, number in zip(ordered, ordered[1:]):
        if _joined(previous, number, bridges):
            run += 1
        else:
            run = 1
        longest = max(longest, run)

    current = 1
    for index in range(len(ordered) - 1, 0, -1):
        if not _joined(ordered[index - 1], ordered[index], bridges):
            break
        current += 1

    return current, longest


@dataclass
class ProgressSnapshot:
    """Derived progress for one enrollment"""
    total_units: int
    total_completed: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    current_unit: int = 1
    completion_rate: float = 0.0
    progress_to_date: float = 0.0
    last_entry_date: date = None
    completed: bool = False
    completed_units: list = field(default_factory=list)

    def to_dict(self):
        return {
            'current_streak': self.current_streak,
            'longest_streak': self.longest_streak,
            'completion_rate': self.completion_rate,
            'progress_to_date': self.progress_to_date,
            'total_completed': self.total_completed,
            'current_unit': self.current_unit,
            'total_units': self.total_units,
            'last_entry_date': self.last_entry_date.isoformat() if self.last_entry_date else None,
            'completed': self.completed,
        }


def _last_activity(entries):
    stamps = [e.updated_at or e.created_at for e in entries]
    stamps = [s for s in stamps if s is not None]
    if not stamps:
        return None
    latest = max(stamps)
    return latest.date() if hasattr(latest, 'date') else latest


def summarize_entries(entries, total_units, units_possible=None, bridges=None):
    """Aggregate entries into a ProgressSnapshot.

    Entries outside [1, total_units] are ignored. ``units_possible`` is the
    progress-to-date denominator; it defaults to the full challenge length.
    ``bridges`` is passed through to calculate_streaks.
    """
    completed = [
        e for e in entries
        if 1 <= e.challenge_number <= total_units and is_entry_completed(e)
    ]
    units = sorted({e.challenge_number for e in completed})
    total_completed = len(units)
    current_streak, longest_streak = calculate_streaks(units, bridges)

    if units_possible is None:
        units_possible = total_units

    return ProgressSnapshot(
        total_units=total_units,
        total_completed=total_completed,
        current_streak=current_streak,
        longest_streak=longest_streak,
        current_unit=completion_unit(total_completed, total_units),
        completion_rate=total_completed / total_units if total_units > 0 else 0.0,
        progress_to_date=min(1.0, total_completed / units_possible) if units_possible > 0 else 0.0,
        last_entry_date=_last_activity(completed),
        completed=total_units > 0 and total_completed >= total_units,
        completed_units=units,
    )


# ========== CALENDAR & BREAKDOWNS ==========

def build_calendar(start_date, year, month, entries_by_unit, current_unit, total_units):
    """Calendar rows for every day of a month that maps into the challenge"""
    days = []
    for day_of_month in range(1, calendar.monthrange(year, month)[1] + 1):
        day = date(year, month, day_of_month)
        unit = unit_for_date(start_date, day)
        if unit < 1 or unit > total_units:
            continue

        entry = entries_by_unit.get(unit)
        done = entry is not None and is_entry_completed(entry)
        if unit > current_unit:
            status = 'future'
        elif unit == current_unit:
            status = 'completed' if done else 'today'
        else:
            status = 'completed' if done else 'missed'

        days.append({
            'date': day.isoformat(),
            'day_number': unit,
            'status': status,
            'has_morning': bool(entry and entry.morning_entry),
            'has_evening': bool(entry and entry.evening_entry),
            'completed_offline': bool(entry and entry.completed_offline),
        })
    return days


def weekly_breakdown(completed_units, current_unit):
    """Completion per 7-unit week, up to and including the current unit"""
    weeks = []
    for week in range(1, math.ceil(current_unit / DAYS_PER_WEEK) + 1):
        first = (week - 1) * DAYS_PER_WEEK + 1
        last = min(week * DAYS_PER_WEEK, current_unit)
        done = sum(1 for unit in completed_units if first <= unit <= last)
        span = last - first + 1
        weeks.append({
            'week': week,
            'days_completed': done,
            'total_days': span,
            'completion_rate': done / span,
        })
    return weeks


def week_end_unit(unit_number):
    """Last unit of the 7-unit week containing unit_number"""
    return max(1, math.ceil(unit_number / DAYS_PER_WEEK)) * DAYS_PER_WEEK


def monthly_breakdown(start_date, completed_units):
    counts = Counter(unit_date(start_date, unit).strftime('%Y-%m') for unit in completed_units)
    return [{'month': month, 'count': counts[month]} for month in sorted(counts)]


def build_achievements(current_unit, current_streak, longest_streak, total_units, theme=None):
    """Unlocked badges, completion first and streak badges last"""
    achievements = []

    for milestone in DAY_MILESTONES:
        if milestone <= total_units and current_unit >= milestone:
            achievements.append({
                'id': f'day-{milestone}',
                'title': f"{milestone} Day{'' if milestone == 1 else 's'}",
                'description': 'Welcome to your journey!' if milestone == 1
                    else f'Completed {milestone} days of the challenge',
                'type': 'milestone',
                'unlocked': True,
                'icon': '🏆' if milestone == total_units else '📅',
            })

    for milestone in STREAK_MILESTONES:
        if longest_streak >= milestone:
            achievements.append({
                'id': f'streak-{milestone}',
                'title': f'{milestone}-Day Streak',
                'description': f'Kept the practice going for {milestone} consecutive days',
                'type': 'streak',
                'unlocked': True,
                'icon': '🔥',
            })

    if current_streak >= 30:
        achievements.append({
            'id': 'consistency-master',
            'title': 'Consistency Master',
            'description': 'Current streak of 30+ days',
            'type': 'special',
            'unlocked': True,
            'icon': '⭐',
        })

    if total_units > 0 and current_unit >= total_units:
        label = (theme or 'challenge').title()
        achievements.append({
            'id': 'graduate',
            'title': f'{label} Graduate',
            'description': f'Reached the final day of the {total_units}-day challenge',
            'type': 'completion',
            'unlocked': True,
            'icon': '🎓',
        })

    return sorted(achievements, key=lambda a: ACHIEVEMENT_PRIORITY[a['type']])
