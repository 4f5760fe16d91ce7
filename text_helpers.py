import re

TITLE_MAX_CHARS = 120


def pluralize(count: int, singular: str, plural: str = None) -> str:
    """Return '<count> <word>' with the word pluralized when count != 1."""
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def _clean_title(title: str, max_chars: int = TITLE_MAX_CHARS) -> str:
    text = re.sub(r"\s+", " ", str(title or "")).strip()
    if not text:
        return "Untitled task"
    if len(text) > max_chars:
        text = text[: max_chars - 1].rstrip() + "…"
    return text


def quote_title(title: str, max_chars: int = TITLE_MAX_CHARS) -> str:
    return f'"{_clean_title(title, max_chars=max_chars)}"'


def due_soon_message(title: str, hours_until_due: int) -> str:
    return f"{quote_title(title)} is due in {pluralize(hours_until_due, 'hour')}"


def overdue_message(title: str, days_overdue: int) -> str:
    if days_overdue < 1:
        return f"{quote_title(title)} is overdue"
    return f"{quote_title(title)} is {pluralize(days_overdue, 'day')} overdue"
