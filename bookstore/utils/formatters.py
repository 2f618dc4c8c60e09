"""
Formatting helpers for order views: dates, names and search text.
"""
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Union

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def format_date(value: Union[str, datetime, None], placeholder: str = '-') -> str:
    """
    Format an ISO date/datetime as DD/MM/YYYY.

    Only the date part is used, so no timezone shift happens.

    Examples:
        format_date('2025-03-07T10:15:00Z') -> "07/03/2025"
        format_date(None) -> "-"
        format_date('garbage') -> "-"
    """
    if value is None or value == '':
        return placeholder

    if isinstance(value, datetime):
        return value.strftime('%d/%m/%Y')

    date_part = str(value).split('T')[0]
    parts = date_part.split('-')
    if len(parts) == 3 and all(parts):
        y, m, d = parts
        return f"{d}/{m}/{y}"
    return placeholder


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO timestamp for sorting. Missing or invalid values sort as the epoch.
    Naive timestamps are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif value:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return EPOCH
    else:
        return EPOCH

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def full_name(first: Optional[str], last: Optional[str], fallback: Any = '') -> str:
    """Join first and last name; fall back (e.g. to the customer id) when both are empty."""
    name = ' '.join(part for part in (first, last) if part)
    if name:
        return name
    return '' if fallback is None else str(fallback)


def search_haystack(values: Iterable[Any]) -> str:
    """Lower-cased, space-joined text of the non-null values."""
    return ' '.join(str(v).lower() for v in values if v is not None)


def normalize_query(query: Any) -> str:
    return str(query or '').strip().lower()
