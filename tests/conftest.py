import os
from datetime import datetime

import pytest

from models import db, User, Board, Task, NotificationSetting

TEST_API_KEY = 'test-api-key'
TEST_CRON_SECRET = 'test-cron-secret'


@pytest.fixture(scope='session')
def flask_app(tmp_path_factory):
    db_path = tmp_path_factory.mktemp('data') / 'reminders.db'
    os.environ['DATABASE_URL'] = f"sqlite:///{db_path}"
    os.environ['API_SHARED_KEY'] = TEST_API_KEY
    os.environ['CRON_SECRET'] = TEST_CRON_SECRET
    os.environ['ENABLE_REMINDER_JOBS'] = '0'
    os.environ['DEFAULT_TIMEZONE'] = 'UTC'

    import app as app_module

    app_module.app.config['TESTING'] = True
    return app_module.app


@pytest.fixture
def app_ctx(flask_app):
    with flask_app.app_context():
        db.drop_all()
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app_ctx):
    return app_ctx.test_client()


def api_headers(user):
    return {'X-API-Key': TEST_API_KEY, 'X-User-Id': str(user.id)}


def cron_headers(secret=TEST_CRON_SECRET):
    return {'Authorization': f'Bearer {secret}'}


@pytest.fixture
def make_user(app_ctx):
    counter = {'n': 0}

    def _make(username=None, **prefs):
        counter['n'] += 1
        user = User(username=username or f"user{counter['n']}")
        db.session.add(user)
        db.session.flush()
        if prefs:
            db.session.add(NotificationSetting(user_id=user.id, **prefs))
        db.session.commit()
        return user

    return _make


@pytest.fixture
def make_task(app_ctx):
    def _make(owner=None, assignee=None, due_at=None, title='Write report', archived_at=None):
        board = Board(name='Board', user_id=owner.id if owner else None)
        db.session.add(board)
        db.session.flush()
        task = Task(
            board_id=board.id,
            assignee_id=assignee.id if assignee else None,
            title=title,
            due_at=due_at,
            archived_at=archived_at,
        )
        db.session.add(task)
        db.session.commit()
        return task

    return _make


@pytest.fixture
def now():
    return datetime(2024, 5, 1, 12, 0)
