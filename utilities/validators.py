import re
from datetime import date, datetime

from errors import ValidationError

_TIME_RE = re.compile(r'^([01]?\d|2[0-3]):([0-5]\d)$')


def looks_like_email(email: str) -> bool:
    if not email or '@' not in email or '.' not in email:
        return False
    if len(email) < 6:
        return False
    return True


def normalize_email(email) -> str:
    if not isinstance(email, str):
        return ''
    return email.strip().lower()


def require_fields(data: dict, fields) -> None:
    missing = [f for f in fields if not data.get(f)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def parse_text(value, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be a non-empty string")
    return value.strip()


def parse_date(value) -> date:
    """Accepts a date, a datetime, or an ISO 'YYYY-MM-DD' string (a trailing time part is ignored)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError(f"Invalid interview date: {value!r}. Expected YYYY-MM-DD.")


def parse_clock(value) -> str:
    """Validate an 'HH:MM' time of day and return it zero-padded."""
    match = _TIME_RE.match(str(value or '').strip())
    if not match:
        raise ValidationError(f"Invalid time: {value!r}. Expected HH:MM.")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def parse_choice(value, choices, field: str) -> str:
    if value not in choices:
        raise ValidationError(f"Invalid {field}: {value!r}. Expected one of: {', '.join(choices)}")
    return value


def parse_skills(value) -> list:
    if isinstance(value, str):
        value = value.split(',')
    if not isinstance(value, (list, tuple)):
        raise ValidationError('Skills must be a list of strings')
    return [str(s).strip() for s in value if str(s).strip()]


def parse_positive_int(value, default: int, field: str, maximum: int = 500) -> int:
    if value in (None, ''):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")
    if number < 1:
        raise ValidationError(f"{field} must be positive")
    return min(number, maximum)
