"""Scheduler-facing trigger routes."""
import hmac

from flask import current_app, jsonify, request


def _cron_authorized():
    secret = current_app.config.get('CRON_SECRET')
    header = request.headers.get('Authorization', '')
    if not header.startswith('Bearer '):
        return False
    token = header[len('Bearer '):].strip()
    return hmac.compare_digest(token.encode('utf-8'), secret.encode('utf-8'))


def run_reminders_cron():
    """Run one reminder pass. Called by an external timer every few minutes."""
    from backend.reminder_engine import run_reminder_pass

    if not current_app.config.get('CRON_SECRET'):
        current_app.logger.warning("Reminder cron called but CRON_SECRET is not configured")
        return jsonify({'error': 'Cron endpoint not configured'}), 503
    if not _cron_authorized():
        current_app.logger.warning("Unauthorized reminder cron call from %s", request.remote_addr)
        return jsonify({'error': 'Unauthorized'}), 401

    try:
        summary = run_reminder_pass()
    except Exception as e:
        current_app.logger.error(f"Reminder cron error: {e}")
        return jsonify({'error': 'Failed to process reminders'}), 500
    return jsonify(summary)
