from datetime import datetime, time

MIN_LEAD_TIME_HOURS = 1
MAX_LEAD_TIME_HOURS = 720


def parse_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ["1", "true", "yes", "on"]


def parse_iso_datetime(value):
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).strip())
    except (TypeError, ValueError):
        return None


def parse_time_str(val):
    """Parse 24h or am/pm strings into a time object; return None on failure."""
    if not val:
        return None
    if isinstance(val, time):
        return val
    s = str(val).strip().lower().replace(" ", "")

    import re

    pattern = r"^(?P<hour>\d{1,2})(:(?P<minute>\d{1,2}))?(:(?P<second>\d{1,2}))?(?P<ampm>a|p|am|pm)?$"
    m = re.match(pattern, s)
    if not m:
        return None
    try:
        hour = int(m.group("hour"))
        minute = int(m.group("minute") or 0)
        ampm = m.group("ampm")
        if m.group("second") is not None:
            sec_val = int(m.group("second"))
            if not (0 <= sec_val <= 59):
                return None
        if ampm:
            if hour < 1 or hour > 12:
                return None
            if ampm in ("p", "pm") and hour != 12:
                hour += 12
            if ampm in ("a", "am") and hour == 12:
                hour = 0
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            return None
        return time(hour=hour, minute=minute)
    except (TypeError, ValueError):
        return None


def format_time_hhmm(value):
    """Render a time as the HH:MM string stored on preference rows."""
    if value is None:
        return None
    return f"{value.hour:02d}:{value.minute:02d}"


def parse_lead_time_hours(raw):
    """Validate a reminder lead time in whole hours; raise ValueError when out of range."""
    if isinstance(raw, bool):
        raise ValueError("Lead time must be a whole number of hours")
    try:
        hours = int(raw)
    except (TypeError, ValueError):
        raise ValueError("Lead time must be a whole number of hours")
    if isinstance(raw, float) and raw != hours:
        raise ValueError("Lead time must be a whole number of hours")
    if not (MIN_LEAD_TIME_HOURS <= hours <= MAX_LEAD_TIME_HOURS):
        raise ValueError(
            f"Lead time must be between {MIN_LEAD_TIME_HOURS} and {MAX_LEAD_TIME_HOURS} hours"
        )
    return hours


def parse_quiet_hours_bound(raw):
    """Return a normalized HH:MM string, None to clear, or raise ValueError."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    parsed = parse_time_str(raw)
    if parsed is None:
        raise ValueError(f"Invalid quiet hours time: {raw!r}")
    return format_time_hhmm(parsed)
