"""Quiet-hours gate for reminder generation."""


def is_within_window(moment, start, end):
    """
    Minute-resolution membership test for a time-of-day window.
    start <= end is the closed interval [start, end]; start > end wraps
    midnight and covers [start, 24:00) plus [00:00, end).
    """
    current = moment.replace(second=0, microsecond=0)
    if start <= end:
        return start <= current <= end
    return current >= start or current < end


def is_quiet_time(policy, instant):
    """Return True when reminders for this policy must be held back at instant."""
    if policy.quiet_hours_start is None or policy.quiet_hours_end is None:
        return False
    return is_within_window(instant.time(), policy.quiet_hours_start, policy.quiet_hours_end)
