"""
Reminder ledger: the dedup store behind at-most-once reminders.

A claim is an INSERT guarded by the uq_scheduled_reminder_claim unique
constraint, so two overlapping passes can never both hold the same
(task, user, kind, period) key. try_claim() only flushes; the caller commits
the claim together with the notification it authorizes.
"""
import json
import logging
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError

from models import (
    db,
    ScheduledReminder,
    REMINDER_KIND_DUE_SOON,
    REMINDER_KIND_OVERDUE,
    REMINDER_KINDS,
)

logger = logging.getLogger(__name__)

CLAIM_CONSTRAINT = 'uq_scheduled_reminder_claim'


def is_claim_conflict(exc):
    """True when an IntegrityError was raised by the claim key, not by another constraint."""
    message = str(getattr(exc, 'orig', None) or exc)
    if CLAIM_CONSTRAINT in message:
        return True
    # SQLite names the columns instead of the constraint.
    return 'UNIQUE constraint failed: scheduled_reminder.' in message


def period_key_for(kind, value):
    """Render the period discriminant: due timestamp for due_soon, calendar day for overdue."""
    if kind == REMINDER_KIND_DUE_SOON:
        if not isinstance(value, datetime):
            raise ValueError("due_soon period must be the due timestamp")
        return value.replace(microsecond=0).isoformat()
    if kind == REMINDER_KIND_OVERDUE:
        if isinstance(value, datetime):
            value = value.date()
        if not isinstance(value, date):
            raise ValueError("overdue period must be a calendar date")
        return value.isoformat()
    raise ValueError(f"Unknown reminder kind: {kind!r}")


def has_due_soon_claim(task_id, user_id, due_at):
    """True when a due-soon reminder was already recorded for this exact due timestamp."""
    return db.session.query(ScheduledReminder.id).filter_by(
        task_id=task_id,
        user_id=user_id,
        kind=REMINDER_KIND_DUE_SOON,
        period_key=period_key_for(REMINDER_KIND_DUE_SOON, due_at),
    ).first() is not None


def has_overdue_claim_since(task_id, user_id, since):
    """True when an overdue reminder was sent at or after since (start of the local day)."""
    return db.session.query(ScheduledReminder.id).filter(
        ScheduledReminder.task_id == task_id,
        ScheduledReminder.user_id == user_id,
        ScheduledReminder.kind == REMINDER_KIND_OVERDUE,
        ScheduledReminder.sent_at >= since,
    ).first() is not None


def try_claim(task_id, user_id, kind, period, scheduled_for, sent_at, channels=None):
    """
    Atomically claim a reminder key inside the current unit of work.

    Returns the pending ScheduledReminder on success, or None when another
    pass already holds the key. On None the session has been rolled back, so
    callers must start a fresh unit of work for every claim. Other integrity
    failures (a task deleted mid-scan) roll back and propagate.
    """
    if kind not in REMINDER_KINDS:
        raise ValueError(f"Unknown reminder kind: {kind!r}")

    entry = ScheduledReminder(
        task_id=task_id,
        user_id=user_id,
        kind=kind,
        period_key=period_key_for(kind, period),
        scheduled_for=scheduled_for,
        sent_at=sent_at,
        channels=json.dumps(list(channels or [])),
    )
    db.session.add(entry)
    try:
        db.session.flush()
    except IntegrityError as exc:
        db.session.rollback()
        if not is_claim_conflict(exc):
            raise
        logger.info(
            "Reminder already claimed task=%s user=%s kind=%s period=%s",
            task_id, user_id, kind, entry.period_key,
        )
        return None
    return entry
