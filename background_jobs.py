import logging
import os

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)

REMINDER_JOB_ID = 'run_reminder_pass'

scheduler = None


def run_scheduled_reminder_pass(app):
    """Scheduler job: one reminder pass inside the Flask app context."""
    from backend.reminder_engine import run_reminder_pass

    with app.app_context():
        try:
            summary = run_reminder_pass()
        except Exception:
            logger.exception("Scheduled reminder pass failed")
            return None
        stats = summary['stats']
        if stats['error_count']:
            logger.warning("Scheduled reminder pass finished with %s errors", stats['error_count'])
        return summary


def start_reminder_scheduler(app):
    """
    Start the background scheduler that triggers reminder passes.

    Passes are safe to overlap, but max_instances/coalesce keep a slow
    pass from piling up duplicate runs in this process.
    """
    global scheduler
    if os.environ.get('ENABLE_REMINDER_JOBS', '1') != '1':
        logger.info("Reminder scheduler disabled via ENABLE_REMINDER_JOBS")
        return None
    if scheduler and scheduler.running:
        return scheduler
    # Avoid double-start in Flask debug reloader
    if app.debug and os.environ.get('WERKZEUG_RUN_MAIN') != 'true':
        return None

    minutes = int(app.config.get('REMINDER_SCAN_MINUTES', 5))
    scheduler = BackgroundScheduler(timezone=app.config.get('DEFAULT_TIMEZONE'))
    scheduler.add_job(
        run_scheduled_reminder_pass,
        'interval',
        minutes=minutes,
        args=[app],
        id=REMINDER_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info("Reminder scheduler started: pass every %s minutes", minutes)
    return scheduler


def stop_reminder_scheduler():
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
    scheduler = None
