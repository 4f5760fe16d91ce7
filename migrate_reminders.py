"""
Create the reminder tables if they do not exist and make sure the ledger
claim constraint is present.
Usage:  python migrate_reminders.py
"""
from app import app, db
from models import Board, Task, Notification, NotificationSetting, ScheduledReminder

CLAIM_INDEX = 'uq_scheduled_reminder_claim'


def main():
    with app.app_context():
        for model in (Board, Task, Notification, NotificationSetting, ScheduledReminder):
            model.__table__.create(db.engine, checkfirst=True)
        print("Reminder tables are ensured.")

        # Tables created before the claim constraint existed need it as a unique index.
        with db.engine.begin() as conn:
            conn.execute(db.text(
                f"CREATE UNIQUE INDEX IF NOT EXISTS {CLAIM_INDEX}_idx "
                "ON scheduled_reminder (task_id, user_id, kind, period_key)"
            ))
        print("scheduled_reminder claim index is ensured.")


if __name__ == '__main__':
    main()
