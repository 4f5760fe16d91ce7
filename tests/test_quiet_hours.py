from datetime import datetime, time, timedelta

import pytest

from backend.notification_preferences import policy_from_setting
from backend.quiet_hours import is_quiet_time, is_within_window
from models import NotificationSetting


def _policy(start, end):
    return policy_from_setting(NotificationSetting(user_id=1, quiet_hours_start=start, quiet_hours_end=end))


def _at(hour, minute=0):
    return datetime(2024, 5, 1, hour, minute)


@pytest.mark.parametrize("hour,expected", [(23, True), (2, True), (12, False), (21, False), (6, False)])
def test_overnight_window_wraps_midnight(hour, expected):
    policy = _policy('22:00', '06:00')
    assert is_quiet_time(policy, _at(hour)) is expected


@pytest.mark.parametrize("hour,expected", [(12, True), (9, True), (17, True), (20, False), (8, False)])
def test_daytime_window_is_closed_interval(hour, expected):
    policy = _policy('09:00', '17:00')
    assert is_quiet_time(policy, _at(hour)) is expected


def test_overnight_window_excludes_end_minute():
    assert is_within_window(time(5, 59), time(22, 0), time(6, 0)) is True
    assert is_within_window(time(6, 0), time(22, 0), time(6, 0)) is False
    assert is_within_window(time(22, 0), time(22, 0), time(6, 0)) is True


def test_daytime_window_compares_at_minute_resolution():
    policy = _policy('09:00', '17:00')
    assert is_quiet_time(policy, _at(17, 0) + timedelta(seconds=45)) is True
    assert is_quiet_time(policy, _at(17, 1)) is False


def test_no_window_never_suppresses():
    policy = policy_from_setting(None)
    assert is_quiet_time(policy, _at(3)) is False


def test_half_configured_window_never_suppresses():
    policy = _policy('22:00', None)
    assert is_quiet_time(policy, _at(23)) is False
