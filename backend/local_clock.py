"""Process-wide local clock. All reminder math uses naive local datetimes."""
from datetime import datetime, time

import pytz
from flask import current_app


def now_local():
    tz = pytz.timezone(current_app.config.get('DEFAULT_TIMEZONE', 'America/New_York'))
    return datetime.now(tz).replace(tzinfo=None)


def start_of_day(value):
    return datetime.combine(value.date(), time.min)
