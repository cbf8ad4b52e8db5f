"""Small helpers shared by services and blueprints.

- sanitize: strip HTML from user-supplied text (bleach).
- isoformat: datetime -> ISO string for JSON payloads.
- parse_datetime / parse_date_bounds: query-string and body date parsing.
"""

from datetime import date, datetime, time, timedelta, timezone

import bleach


def sanitize(text):
    """Strip all HTML tags from user input."""
    if text is None:
        return text
    return bleach.clean(str(text), tags=[], strip=True).strip()


def isoformat(value):
    if value is None:
        return None
    return value.isoformat()


def _to_naive_utc(value):
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_datetime(value, field="date"):
    """Parse an ISO date or datetime string.

    Accepts "2026-10-19", "2026-10-19T09:30" and the "Z" suffix browsers
    emit from Date.toISOString(). Values with an offset are converted to
    UTC and returned naive, the same form SQLite hands back.

    Raises:
        ValueError: If the value is empty or not ISO formatted.
    """
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    if not value or not isinstance(value, str):
        raise ValueError(f"Invalid {field}.")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"Invalid {field}: '{value}'.")
    return _to_naive_utc(parsed)


def _is_date_only(value):
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return False
    return True


def parse_date_bounds(start=None, end=None):
    """Turn startDate / endDate query params into a (lower, upper) pair.

    The lower bound is inclusive. A date-only end value covers the whole
    day, so the returned upper bound is exclusive midnight of the next day.
    Missing values come back as None.

    Returns:
        Tuple (lower, upper_exclusive_or_inclusive, upper_is_exclusive).
    """
    lower = parse_datetime(start, "startDate") if start else None

    upper = None
    exclusive = False
    if end:
        if _is_date_only(end):
            day = date.fromisoformat(end.strip())
            upper = datetime.combine(day + timedelta(days=1), time.min)
            exclusive = True
        else:
            upper = parse_datetime(end, "endDate")

    if lower is not None and upper is not None and lower > upper:
        raise ValueError("startDate must not be after endDate.")

    return lower, upper, exclusive


def apply_date_bounds(query, column, start=None, end=None):
    """Add created_at-style range predicates to a query."""
    lower, upper, exclusive = parse_date_bounds(start, end)
    if lower is not None:
        query = query.filter(column >= lower)
    if upper is not None:
        query = query.filter(column < upper if exclusive else column <= upper)
    return query
