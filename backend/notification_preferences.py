"""
Notification preference resolution.

A user may have no NotificationSetting row, or a row with only some columns
filled. resolve_notification_policy() always returns a complete
NotificationPolicy: each column falls back to its default on its own.
"""
import logging
from dataclasses import dataclass
from datetime import time, timedelta
from typing import Optional

from models import (
    db,
    NotificationSetting,
    REMINDER_KIND_DUE_SOON,
    REMINDER_KIND_OVERDUE,
)
from services.validation_service import (
    format_time_hhmm,
    parse_bool,
    parse_lead_time_hours,
    parse_quiet_hours_bound,
    parse_time_str,
)

logger = logging.getLogger(__name__)

DEFAULT_PREFERENCES = {
    'in_app_enabled': True,
    'in_app_due_soon': True,
    'in_app_overdue': True,
    'email_enabled': True,
    'email_due_soon': True,
    'email_overdue': True,
    'push_enabled': False,
    'push_due_soon': True,
    'push_overdue': True,
    'reminder_lead_time_hours': 24,
    'quiet_hours_start': None,
    'quiet_hours_end': None,
}

BOOLEAN_FIELDS = [
    'in_app_enabled',
    'in_app_due_soon',
    'in_app_overdue',
    'email_enabled',
    'email_due_soon',
    'email_overdue',
    'push_enabled',
    'push_due_soon',
    'push_overdue',
]


@dataclass(frozen=True)
class NotificationPolicy:
    in_app_enabled: bool
    in_app_due_soon: bool
    in_app_overdue: bool
    email_enabled: bool
    email_due_soon: bool
    email_overdue: bool
    push_enabled: bool
    push_due_soon: bool
    push_overdue: bool
    lead_time: timedelta
    quiet_hours_start: Optional[time] = None
    quiet_hours_end: Optional[time] = None

    def channel_allows(self, channel, kind):
        """True when the channel master switch and its per-kind switch are both on."""
        if kind not in (REMINDER_KIND_DUE_SOON, REMINDER_KIND_OVERDUE):
            return False
        return bool(getattr(self, f'{channel}_enabled') and getattr(self, f'{channel}_{kind}'))

    def in_app_allows(self, kind):
        return self.channel_allows('in_app', kind)

    def channels_for(self, kind):
        """Channels recorded on a ledger entry. in_app is always the delivered channel."""
        channels = ['in_app']
        for channel in ('email', 'push'):
            if self.channel_allows(channel, kind):
                channels.append(channel)
        return channels

    def to_dict(self):
        return {
            'in_app_enabled': self.in_app_enabled,
            'in_app_due_soon': self.in_app_due_soon,
            'in_app_overdue': self.in_app_overdue,
            'email_enabled': self.email_enabled,
            'email_due_soon': self.email_due_soon,
            'email_overdue': self.email_overdue,
            'push_enabled': self.push_enabled,
            'push_due_soon': self.push_due_soon,
            'push_overdue': self.push_overdue,
            'reminder_lead_time_hours': int(self.lead_time.total_seconds() // 3600),
            'quiet_hours_start': format_time_hhmm(self.quiet_hours_start),
            'quiet_hours_end': format_time_hhmm(self.quiet_hours_end),
        }


def _field(setting, name):
    value = getattr(setting, name, None) if setting is not None else None
    return DEFAULT_PREFERENCES[name] if value is None else value


def _quiet_bound(setting, name):
    raw = _field(setting, name)
    if raw is None:
        return None
    parsed = parse_time_str(raw)
    if parsed is None:
        logger.warning("Ignoring unparseable %s=%r for user %s", name, raw, setting.user_id)
    return parsed


def policy_from_setting(setting):
    """Build a complete policy from a possibly missing or partial NotificationSetting."""
    lead_hours = _field(setting, 'reminder_lead_time_hours')
    if lead_hours <= 0:
        lead_hours = DEFAULT_PREFERENCES['reminder_lead_time_hours']

    return NotificationPolicy(
        **{name: bool(_field(setting, name)) for name in BOOLEAN_FIELDS},
        lead_time=timedelta(hours=lead_hours),
        quiet_hours_start=_quiet_bound(setting, 'quiet_hours_start'),
        quiet_hours_end=_quiet_bound(setting, 'quiet_hours_end'),
    )


def resolve_notification_policy(user_id):
    setting = NotificationSetting.query.filter_by(user_id=user_id).first()
    return policy_from_setting(setting)


def apply_preference_updates(user_id, data):
    """
    Create or update the stored preference row from a partial payload.
    Only keys present in data are touched; a null value resets that field to
    its default. Raises ValueError on invalid input
    before anything is written.
    """
    updates = {}
    for name in BOOLEAN_FIELDS:
        if name in data:
            value = data.get(name)
            # null clears the column so the default applies again
            updates[name] = None if value is None else parse_bool(value)
    if 'reminder_lead_time_hours' in data:
        lead = data.get('reminder_lead_time_hours')
        updates['reminder_lead_time_hours'] = None if lead is None else parse_lead_time_hours(lead)
    for name in ('quiet_hours_start', 'quiet_hours_end'):
        if name in data:
            updates[name] = parse_quiet_hours_bound(data.get(name))

    setting = NotificationSetting.query.filter_by(user_id=user_id).first()
    if setting is None:
        setting = NotificationSetting(user_id=user_id)
        db.session.add(setting)
    for name, value in updates.items():
        setattr(setting, name, value)
    db.session.commit()
    return policy_from_setting(setting)
