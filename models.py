import json

from flask_sqlalchemy import SQLAlchemy
from datetime import datetime

db = SQLAlchemy()

REMINDER_KIND_DUE_SOON = 'due_soon'
REMINDER_KIND_OVERDUE = 'overdue'
REMINDER_KINDS = (REMINDER_KIND_DUE_SOON, REMINDER_KIND_OVERDUE)


class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    boards = db.relationship('Board', backref='owner', lazy=True, cascade="all, delete-orphan")
    notifications = db.relationship('Notification', backref='user', lazy=True, cascade="all, delete-orphan")
    notification_setting = db.relationship('NotificationSetting', backref='user', uselist=False, cascade="all, delete-orphan")


class Board(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)  # board owner, fallback reminder target
    name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    tasks = db.relationship('Task', backref='board', lazy=True, cascade="all, delete-orphan")

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class Task(db.Model):
    """
    A card on a board. Only the deadline-related columns matter to reminders.
    due_at/archived_at are naive datetimes in server local timezone.
    """
    id = db.Column(db.Integer, primary_key=True)
    board_id = db.Column(db.Integer, db.ForeignKey('board.id'), nullable=False)
    assignee_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    title = db.Column(db.String(200), nullable=False)
    due_at = db.Column(db.DateTime, nullable=True, index=True)
    archived_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    assignee = db.relationship('User', foreign_keys=[assignee_id])

    @property
    def is_archived(self):
        return self.archived_at is not None

    def to_dict(self):
        return {
            'id': self.id,
            'board_id': self.board_id,
            'assignee_id': self.assignee_id,
            'title': self.title,
            'due_at': self.due_at.isoformat() if self.due_at else None,
            'archived': self.is_archived,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class Notification(db.Model):
    """In-app notification record."""
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    type = db.Column(db.String(50), nullable=False, default='general')  # due_soon | overdue | general
    title = db.Column(db.String(200), nullable=False)
    body = db.Column(db.Text, nullable=True)
    task_id = db.Column(db.Integer, db.ForeignKey('task.id'), nullable=True)
    board_id = db.Column(db.Integer, db.ForeignKey('board.id'), nullable=True)
    link = db.Column(db.String(300), nullable=True)  # optional deep link (relative URL)
    channel = db.Column(db.String(20), nullable=True)  # in_app | email | push | mixed
    read_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'type': self.type,
            'title': self.title,
            'body': self.body,
            'task_id': self.task_id,
            'board_id': self.board_id,
            'link': self.link,
            'channel': self.channel,
            'read_at': self.read_at.isoformat() if self.read_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class NotificationSetting(db.Model):
    """
    Per-user notification preferences.
    Every preference column is nullable: a NULL means "use the default"
    and is filled per field by backend.notification_preferences.
    """
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, unique=True)
    in_app_enabled = db.Column(db.Boolean, nullable=True)
    in_app_due_soon = db.Column(db.Boolean, nullable=True)
    in_app_overdue = db.Column(db.Boolean, nullable=True)
    email_enabled = db.Column(db.Boolean, nullable=True)
    email_due_soon = db.Column(db.Boolean, nullable=True)
    email_overdue = db.Column(db.Boolean, nullable=True)
    push_enabled = db.Column(db.Boolean, nullable=True)
    push_due_soon = db.Column(db.Boolean, nullable=True)
    push_overdue = db.Column(db.Boolean, nullable=True)
    reminder_lead_time_hours = db.Column(db.Integer, nullable=True)
    quiet_hours_start = db.Column(db.String(5), nullable=True)  # HH:MM
    quiet_hours_end = db.Column(db.String(5), nullable=True)  # HH:MM
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ScheduledReminder(db.Model):
    """
    Reminder ledger. One row per emitted reminder, never updated.
    The unique constraint is the claim: period_key is the due timestamp for
    due_soon reminders and the calendar day for overdue reminders.
    """
    __table_args__ = (
        db.UniqueConstraint('task_id', 'user_id', 'kind', 'period_key', name='uq_scheduled_reminder_claim'),
    )

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(db.Integer, db.ForeignKey('task.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    kind = db.Column(db.String(20), nullable=False)  # due_soon | overdue
    period_key = db.Column(db.String(40), nullable=False)
    scheduled_for = db.Column(db.DateTime, nullable=False)
    sent_at = db.Column(db.DateTime, nullable=False, index=True)
    channels = db.Column(db.Text, nullable=True)  # JSON list: ["in_app", "email", "push"]
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def channel_list(self):
        if not self.channels:
            return []
        try:
            return json.loads(self.channels)
        except (TypeError, ValueError):
            return []

    def to_dict(self):
        return {
            'id': self.id,
            'task_id': self.task_id,
            'user_id': self.user_id,
            'kind': self.kind,
            'period_key': self.period_key,
            'scheduled_for': self.scheduled_for.isoformat() if self.scheduled_for else None,
            'sent_at': self.sent_at.isoformat() if self.sent_at else None,
            'channels': self.channel_list(),
        }
