import logging
import os

from dotenv import load_dotenv
from flask import Flask, request, jsonify, session

load_dotenv()

from models import db, User, Notification
from background_jobs import start_reminder_scheduler
from services import cron_routes, notification_routes

logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO'),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

app = Flask(__name__)
app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///todo.db')
app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
app.config['PERMANENT_SESSION_LIFETIME'] = 365 * 24 * 60 * 60  # 1 year in seconds
app.config['API_SHARED_KEY'] = os.environ.get('API_SHARED_KEY')  # Optional shared key for API callers
app.config['CRON_SECRET'] = os.environ.get('CRON_SECRET')  # Bearer token required by /api/cron/reminders
app.config['DEFAULT_TIMEZONE'] = os.environ.get('DEFAULT_TIMEZONE', 'America/New_York')
app.config['REMINDER_SCAN_MINUTES'] = int(os.environ.get('REMINDER_SCAN_MINUTES', 5))

db.init_app(app)


def get_current_user():
    """Resolve the current user from a shared API key + user id header, else fall back to session."""
    # Header-based auth for service callers
    api_key = request.headers.get('X-API-Key')
    api_user_id = request.headers.get('X-User-Id')
    shared_key = app.config.get('API_SHARED_KEY')
    if shared_key and api_key and api_user_id:
        try:
            api_uid_int = int(api_user_id)
        except (TypeError, ValueError):
            api_uid_int = None
        if api_uid_int and api_key == shared_key:
            user = db.session.get(User, api_uid_int)
            if user:
                return user

    # Session-based auth for browser users
    user_id = session.get('user_id')
    if user_id:
        return db.session.get(User, user_id)
    return None


with app.app_context():
    db.create_all()


_jobs_bootstrapped = False

@app.before_request
def _bootstrap_background_jobs():
    global _jobs_bootstrapped
    if _jobs_bootstrapped:
        return
    start_reminder_scheduler(app)
    _jobs_bootstrapped = True


@app.route('/api/current-user')
def current_user_info():
    """Get current user info"""
    user = get_current_user()
    if user:
        return jsonify({'user_id': user.id, 'username': user.username})
    return jsonify({'user_id': None, 'username': None})


# Reminder trigger
app.add_url_rule('/api/cron/reminders', 'run_reminders_cron', cron_routes.run_reminders_cron, methods=['GET', 'POST'])

# Notifications
app.add_url_rule('/api/notifications', 'api_list_notifications', notification_routes.api_list_notifications, methods=['GET'])
app.add_url_rule('/api/notifications/read-all', 'api_mark_notifications_read', notification_routes.api_mark_notifications_read, methods=['POST'])
app.add_url_rule('/api/notifications/<int:notification_id>/read', 'api_mark_notification_read', notification_routes.api_mark_notification_read, methods=['POST'])
app.add_url_rule('/api/notifications', 'api_clear_notifications', notification_routes.api_clear_notifications, methods=['DELETE'])
app.add_url_rule('/api/notifications/<int:notification_id>', 'api_delete_notification', notification_routes.api_delete_notification, methods=['DELETE'])
app.add_url_rule('/api/notification-settings', 'api_notification_settings', notification_routes.api_notification_settings, methods=['GET', 'PUT'])


if __name__ == '__main__':
    app.run(host='0.0.0.0', debug=True)
