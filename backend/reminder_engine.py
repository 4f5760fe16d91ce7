"""
Due-date reminder engine.

run_reminder_pass() is invoked by the cron route, the background scheduler
or the CLI script. It has no state of its own between passes: everything
that must survive a pass lives in the ScheduledReminder ledger, which makes
repeated and overlapping passes safe.
"""
import logging
import math
from datetime import timedelta

from models import db, REMINDER_KIND_DUE_SOON, REMINDER_KIND_OVERDUE
from backend.local_clock import now_local, start_of_day
from backend.notification_preferences import resolve_notification_policy
from backend.quiet_hours import is_quiet_time
from backend.reminder_candidates import scan_candidates
from backend.reminder_emitter import emit_reminder
from backend.reminder_ledger import has_due_soon_claim, has_overdue_claim_since

logger = logging.getLogger(__name__)

OUTCOME_SENT = 'sent'
OUTCOME_SKIPPED_PREFS = 'skipped_prefs'
OUTCOME_NOT_ELIGIBLE = 'not_eligible'
OUTCOME_ALREADY_SENT = 'already_sent'
OUTCOME_QUIET_HOURS = 'quiet_hours'
OUTCOME_LOST_RACE = 'lost_race'

_OUTCOME_STATS = {
    OUTCOME_SKIPPED_PREFS: 'skipped_prefs',
    OUTCOME_NOT_ELIGIBLE: 'skipped_not_eligible',
    OUTCOME_ALREADY_SENT: 'skipped_already_sent',
    OUTCOME_QUIET_HOURS: 'skipped_quiet_hours',
    OUTCOME_LOST_RACE: 'skipped_lost_race',
}


def due_soon_window_start(due_at, lead_time):
    return due_at - lead_time


def is_due_soon_eligible(due_at, lead_time, now):
    return due_soon_window_start(due_at, lead_time) <= now < due_at


def hours_until(due_at, now):
    """Whole hours until due, rounded half up."""
    return int(math.floor((due_at - now).total_seconds() / 3600 + 0.5))


def days_overdue(due_at, now):
    return int((now - due_at) // timedelta(days=1))


def evaluate_due_soon(candidate, policy, now):
    task = candidate.task
    user_id = candidate.user_id
    due_at = task.due_at

    if not policy.in_app_allows(REMINDER_KIND_DUE_SOON):
        return OUTCOME_SKIPPED_PREFS
    if due_at is None or not is_due_soon_eligible(due_at, policy.lead_time, now):
        return OUTCOME_NOT_ELIGIBLE
    if has_due_soon_claim(task.id, user_id, due_at):
        return OUTCOME_ALREADY_SENT
    if is_quiet_time(policy, now):
        return OUTCOME_QUIET_HOURS

    notif = emit_reminder(
        task,
        user_id,
        REMINDER_KIND_DUE_SOON,
        period=due_at,
        scheduled_for=due_soon_window_start(due_at, policy.lead_time),
        now=now,
        channels=policy.channels_for(REMINDER_KIND_DUE_SOON),
        hours_until_due=hours_until(due_at, now),
    )
    return OUTCOME_SENT if notif is not None else OUTCOME_LOST_RACE


def evaluate_overdue(candidate, policy, now):
    task = candidate.task
    user_id = candidate.user_id
    due_at = task.due_at

    if not policy.in_app_allows(REMINDER_KIND_OVERDUE):
        return OUTCOME_SKIPPED_PREFS
    if due_at is None or due_at > now:
        return OUTCOME_NOT_ELIGIBLE
    today_start = start_of_day(now)
    if has_overdue_claim_since(task.id, user_id, today_start):
        return OUTCOME_ALREADY_SENT
    if is_quiet_time(policy, now):
        return OUTCOME_QUIET_HOURS

    notif = emit_reminder(
        task,
        user_id,
        REMINDER_KIND_OVERDUE,
        period=now.date(),
        scheduled_for=now,
        now=now,
        channels=policy.channels_for(REMINDER_KIND_OVERDUE),
        days_overdue=days_overdue(due_at, now),
    )
    return OUTCOME_SENT if notif is not None else OUTCOME_LOST_RACE


def _new_stats():
    return {
        'due_soon_sent': 0,
        'overdue_sent': 0,
        'candidates': 0,
        'skipped_prefs': 0,
        'skipped_quiet_hours': 0,
        'skipped_already_sent': 0,
        'skipped_not_eligible': 0,
        'skipped_lost_race': 0,
        'skipped_no_target': 0,
        'error_count': 0,
        'errors': [],
    }


def run_reminder_pass(now=None):
    """
    Run one complete reminder pass and return a JSON-ready summary.

    Per-candidate failures are logged and collected in stats['errors'];
    they never abort the pass.
    """
    now = now or now_local()
    stats = _new_stats()
    policies = {}

    def policy_for(user_id):
        if user_id not in policies:
            policies[user_id] = resolve_notification_policy(user_id)
        return policies[user_id]

    scan = scan_candidates(now)
    stats['candidates'] = len(scan)
    stats['skipped_no_target'] = len(scan.skipped_task_ids)

    # Task ids are read up front: a rollback expires the loaded tasks.
    work = [(REMINDER_KIND_DUE_SOON, c, c.task.id, evaluate_due_soon) for c in scan.due_soon]
    work += [(REMINDER_KIND_OVERDUE, c, c.task.id, evaluate_overdue) for c in scan.overdue]

    for kind, candidate, task_id, evaluate in work:
        try:
            outcome = evaluate(candidate, policy_for(candidate.user_id), now)
        except Exception as e:
            db.session.rollback()
            stats['error_count'] += 1
            stats['errors'].append({
                'task_id': task_id,
                'user_id': candidate.user_id,
                'kind': kind,
                'error': str(e),
            })
            logger.exception("Error evaluating %s reminder for task %s user %s", kind, task_id, candidate.user_id)
            continue

        if outcome == OUTCOME_SENT:
            stats[f'{kind}_sent'] += 1
        else:
            stats[_OUTCOME_STATS[outcome]] += 1

    logger.info(
        "Reminder pass at=%s candidates=%s due_soon_sent=%s overdue_sent=%s skipped_prefs=%s "
        "skipped_quiet_hours=%s skipped_already_sent=%s skipped_lost_race=%s skipped_no_target=%s errors=%s",
        now.isoformat(),
        stats['candidates'],
        stats['due_soon_sent'],
        stats['overdue_sent'],
        stats['skipped_prefs'],
        stats['skipped_quiet_hours'],
        stats['skipped_already_sent'],
        stats['skipped_lost_race'],
        stats['skipped_no_target'],
        stats['error_count'],
    )
    return {
        'success': True,
        'timestamp': now.isoformat(),
        'stats': stats,
    }
