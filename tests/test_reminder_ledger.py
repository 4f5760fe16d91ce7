from datetime import date, datetime, timedelta

import pytest

from sqlalchemy.exc import IntegrityError

from backend.reminder_ledger import (
    has_due_soon_claim,
    is_claim_conflict,
    has_overdue_claim_since,
    period_key_for,
    try_claim,
)
from models import db, ScheduledReminder


def test_period_key_for_each_kind():
    assert period_key_for('due_soon', datetime(2024, 5, 2, 9, 30, 15, 123)) == '2024-05-02T09:30:15'
    assert period_key_for('overdue', date(2024, 5, 2)) == '2024-05-02'
    assert period_key_for('overdue', datetime(2024, 5, 2, 18, 0)) == '2024-05-02'


def test_period_key_rejects_unknown_kind():
    with pytest.raises(ValueError):
        period_key_for('weekly', date(2024, 5, 2))


def test_claim_succeeds_once_per_key(app_ctx, make_user, make_task, now):
    user = make_user()
    task = make_task(owner=user, due_at=now + timedelta(hours=3))

    first = try_claim(task.id, user.id, 'due_soon', task.due_at, now, now, channels=['in_app'])
    assert first is not None
    db.session.commit()

    second = try_claim(task.id, user.id, 'due_soon', task.due_at, now, now, channels=['in_app'])
    assert second is None
    assert ScheduledReminder.query.count() == 1
    assert ScheduledReminder.query.one().channel_list() == ['in_app']


def test_new_due_timestamp_is_a_new_key(app_ctx, make_user, make_task, now):
    user = make_user()
    task = make_task(owner=user, due_at=now + timedelta(hours=3))
    assert try_claim(task.id, user.id, 'due_soon', task.due_at, now, now) is not None
    db.session.commit()

    moved = task.due_at + timedelta(days=1)
    assert has_due_soon_claim(task.id, user.id, task.due_at) is True
    assert has_due_soon_claim(task.id, user.id, moved) is False
    assert try_claim(task.id, user.id, 'due_soon', moved, now, now) is not None
    db.session.commit()
    assert ScheduledReminder.query.count() == 2


def test_overdue_claims_are_scoped_to_the_calendar_day(app_ctx, make_user, make_task, now):
    user = make_user()
    task = make_task(owner=user, due_at=now - timedelta(days=1))
    assert try_claim(task.id, user.id, 'overdue', now.date(), now, now) is not None
    db.session.commit()

    today_start = datetime.combine(now.date(), datetime.min.time())
    assert has_overdue_claim_since(task.id, user.id, today_start) is True
    assert has_overdue_claim_since(task.id, user.id, today_start + timedelta(days=1)) is False

    later_today = now + timedelta(hours=5)
    assert try_claim(task.id, user.id, 'overdue', later_today.date(), later_today, later_today) is None

    tomorrow = now + timedelta(days=1)
    assert try_claim(task.id, user.id, 'overdue', tomorrow.date(), tomorrow, tomorrow) is not None


def test_claims_are_per_user(app_ctx, make_user, make_task, now):
    owner = make_user()
    other = make_user()
    task = make_task(owner=owner, due_at=now + timedelta(hours=3))
    assert try_claim(task.id, owner.id, 'due_soon', task.due_at, now, now) is not None
    db.session.commit()
    assert try_claim(task.id, other.id, 'due_soon', task.due_at, now, now) is not None


def test_only_the_claim_key_counts_as_a_conflict():
    def integrity_error(message):
        return IntegrityError('INSERT INTO scheduled_reminder', {}, Exception(message))

    assert is_claim_conflict(integrity_error(
        'UNIQUE constraint failed: scheduled_reminder.task_id, scheduled_reminder.user_id, '
        'scheduled_reminder.kind, scheduled_reminder.period_key'
    ))
    assert is_claim_conflict(integrity_error(
        'duplicate key value violates unique constraint "uq_scheduled_reminder_claim"'
    ))
    assert not is_claim_conflict(integrity_error('FOREIGN KEY constraint failed'))
    assert not is_claim_conflict(integrity_error('NOT NULL constraint failed: scheduled_reminder.sent_at'))
