"""
Notification emitter for deadline reminders.

The ledger claim and the Notification row are committed in one transaction:
either both exist afterwards or neither does.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db, Notification, REMINDER_KIND_DUE_SOON, REMINDER_KIND_OVERDUE
from backend.reminder_ledger import is_claim_conflict, try_claim
from text_helpers import due_soon_message, overdue_message

logger = logging.getLogger(__name__)

REMINDER_TITLES = {
    REMINDER_KIND_DUE_SOON: "Task due soon",
    REMINDER_KIND_OVERDUE: "Task overdue!",
}


def task_link(task):
    return f"/board/{task.board_id}?task={task.id}"


def build_reminder_content(task, kind, hours_until_due=None, days_overdue=None):
    """Return (title, body) for a reminder notification."""
    if kind == REMINDER_KIND_DUE_SOON:
        return REMINDER_TITLES[kind], due_soon_message(task.title, hours_until_due or 0)
    if kind == REMINDER_KIND_OVERDUE:
        return REMINDER_TITLES[kind], overdue_message(task.title, days_overdue or 0)
    raise ValueError(f"Unknown reminder kind: {kind!r}")


def emit_reminder(task, user_id, kind, period, scheduled_for, now, channels,
                  hours_until_due=None, days_overdue=None):
    """
    Claim the reminder key and write its notification.

    Returns the committed Notification, or None when another pass already
    claimed the key. Storage errors, including integrity failures other
    than the claim key, roll back both rows and propagate.
    """
    title, body = build_reminder_content(
        task, kind, hours_until_due=hours_until_due, days_overdue=days_overdue
    )
    task_id = task.id
    board_id = task.board_id
    link = task_link(task)

    entry = try_claim(task_id, user_id, kind, period, scheduled_for, now, channels=channels)
    if entry is None:
        return None

    notif = Notification(
        user_id=user_id,
        type=kind,
        title=title,
        body=body,
        task_id=task_id,
        board_id=board_id,
        link=link,
        channel='in_app',
        created_at=now,
    )
    db.session.add(notif)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        if not is_claim_conflict(exc):
            raise
        logger.info("Lost reminder claim at commit task=%s user=%s kind=%s", task_id, user_id, kind)
        return None
    except SQLAlchemyError:
        db.session.rollback()
        raise

    logger.info("Reminder sent kind=%s task=%s user=%s notification=%s", kind, task_id, user_id, notif.id)
    return notif
