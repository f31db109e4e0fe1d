"""
Database models for the 100-day challenge journal
"""
import enum
from datetime import datetime, date
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from progress_engine import get_schedule_strategy, is_entry_completed, DEFAULT_REVIEW_INTERVAL

db = SQLAlchemy()


SCHEDULE_TYPES = ('morning', 'both')


class EntryType(enum.Enum):
    """Which journal field a save targets"""
    GOD_MESSAGE = 'god_message'
    MORNING = 'morning'
    EVENING = 'evening'

    @property
    def column(self):
        return ENTRY_COLUMNS[self]

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f'Unknown entry type: {value!r}') from None


ENTRY_COLUMNS = {
    EntryType.GOD_MESSAGE: 'god_message',
    EntryType.MORNING: 'morning_entry',
    EntryType.EVENING: 'evening_entry',
}


# ========== USERS ==========

class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120))
    password_hash = db.Column(db.String(256))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    enrollments = db.relationship('UserChallenge', backref='user', lazy='dynamic')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return bool(self.password_hash) and check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {'id': self.id, 'username': self.username, 'email': self.email}

    def __repr__(self):
        return f'<User {self.username}>'


# ========== CHALLENGE CONTENT ==========

class Challenge(db.Model):
    """A challenge template (e.g. 100 Days of Gratitude), edited by admins"""
    __tablename__ = 'challenges'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    total_days = db.Column(db.Integer, nullable=False, default=100)
    theme = db.Column(db.String(50), default='gratitude')  # gratitude, prayer, faith
    category = db.Column(db.String(100))
    weekly_schedule = db.Column(db.Boolean, default=False)  # Mon-Fri + review day
    is_active = db.Column(db.Boolean, default=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    prompts = db.relationship(
        'ChallengePrompt', backref='challenge', lazy='dynamic', cascade='all, delete-orphan'
    )

    def schedule_strategy(self, review_interval=DEFAULT_REVIEW_INTERVAL):
        return get_schedule_strategy(self.weekly_schedule, review_interval)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'total_days': self.total_days,
            'theme': self.theme,
            'category': self.category,
            'weekly_schedule': bool(self.weekly_schedule),
            'is_active': bool(self.is_active),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Challenge {self.title}>'


class ChallengePrompt(db.Model):
    """Scripture and journaling prompts for one day of a challenge"""
    __tablename__ = 'challenge_prompts'

    id = db.Column(db.Integer, primary_key=True)
    challenge_id = db.Column(db.Integer, db.ForeignKey('challenges.id'), nullable=False, index=True)
    challenge_number = db.Column(db.Integer, nullable=False)
    scripture_reference = db.Column(db.String(200))
    scripture_text = db.Column(db.Text)
    context_text = db.Column(db.Text)
    morning_prompt = db.Column(db.Text, nullable=False)
    evening_reflection = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('challenge_id', 'challenge_number', name='unique_challenge_prompt'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'challenge_id': self.challenge_id,
            'challenge_number': self.challenge_number,
            'scripture_reference': self.scripture_reference,
            'scripture_text': self.scripture_text,
            'context_text': self.context_text,
            'morning_prompt': self.morning_prompt,
            'evening_reflection': self.evening_reflection,
        }

    def __repr__(self):
        return f'<ChallengePrompt {self.challenge_id}#{self.challenge_number}>'


# ========== ENROLLMENTS & ENTRIES ==========

class UserChallenge(db.Model):
    """A user's run through a challenge, with a denormalized progress snapshot"""
    __tablename__ = 'user_challenges'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    challenge_id = db.Column(db.Integer, db.ForeignKey('challenges.id'), nullable=False, index=True)
    start_date = db.Column(db.Date, nullable=False, default=date.today)
    schedule_type = db.Column(db.String(20), nullable=False, default='morning')  # morning, both

    # Snapshot, recomputed from entries on every write
    current_challenge_number = db.Column(db.Integer, default=1)
    total_completed = db.Column(db.Integer, default=0)
    current_streak = db.Column(db.Integer, default=0)
    longest_streak = db.Column(db.Integer, default=0)
    last_entry_date = db.Column(db.Date)
    completed = db.Column(db.Boolean, default=False, index=True)

    # Weekly schedule settings
    weekly_review_day = db.Column(db.Integer, default=0)  # 0 = Sunday
    weekly_goal = db.Column(db.Integer, default=5)

    version = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    challenge = db.relationship('Challenge')
    entries = db.relationship(
        'ChallengeEntry', backref='user_challenge', lazy='dynamic', cascade='all, delete-orphan'
    )

    __mapper_args__ = {'version_id_col': version}

    @property
    def total_days(self):
        return self.challenge.total_days if self.challenge else 0

    def apply_snapshot(self, snapshot):
        """Copy aggregated progress onto the row (caller commits)"""
        self.current_challenge_number = snapshot.current_unit
        self.total_completed = snapshot.total_completed
        self.current_streak = snapshot.current_streak
        self.longest_streak = snapshot.longest_streak
        self.last_entry_date = snapshot.last_entry_date
        self.completed = snapshot.completed

    def to_dict(self, include_challenge=True):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'challenge_id': self.challenge_id,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'schedule_type': self.schedule_type,
            'current_challenge_number': self.current_challenge_number,
            'total_completed': self.total_completed,
            'current_streak': self.current_streak,
            'longest_streak': self.longest_streak,
            'last_entry_date': self.last_entry_date.isoformat() if self.last_entry_date else None,
            'completed': bool(self.completed),
            'weekly_review_day': self.weekly_review_day,
            'weekly_goal': self.weekly_goal,
        }
        if include_challenge and self.challenge:
            data['challenge'] = self.challenge.to_dict()
        return data

    def __repr__(self):
        return f'<UserChallenge {self.id} user={self.user_id} day={self.current_challenge_number}>'


class ChallengeEntry(db.Model):
    """Journal entry for one day of an enrollment"""
    __tablename__ = 'challenge_entries'

    id = db.Column(db.Integer, primary_key=True)
    user_challenge_id = db.Column(
        db.Integer, db.ForeignKey('user_challenges.id'), nullable=False, index=True
    )
    challenge_number = db.Column(db.Integer, nullable=False)
    god_message = db.Column(db.Text)
    morning_entry = db.Column(db.Text)
    evening_entry = db.Column(db.Text)
    completed_offline = db.Column(db.Boolean, default=False, nullable=False)
    review_notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('user_challenge_id', 'challenge_number', name='unique_enrollment_day'),
    )

    def is_completed(self):
        return is_entry_completed(self)

    def to_dict(self):
        return {
            'id': self.id,
            'user_challenge_id': self.user_challenge_id,
            'challenge_number': self.challenge_number,
            'god_message': self.god_message,
            'morning_entry': self.morning_entry,
            'evening_entry': self.evening_entry,
            'completed_offline': bool(self.completed_offline),
            'review_notes': self.review_notes,
            'completed': self.is_completed(),
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<ChallengeEntry {self.user_challenge_id}#{self.challenge_number}>'


EMPTY_ENTRY = {
    'god_message': None,
    'morning_entry': None,
    'evening_entry': None,
    'completed_offline': False,
    'review_notes': None,
}
