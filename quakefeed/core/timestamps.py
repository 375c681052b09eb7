"""Timestamp resolution - Pure functions.

The agency feed publishes times in several textual shapes; the global feed
uses epoch milliseconds. Everything resolves to a UTC-aware datetime or None.
"""

import re
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Any


# Thailand time (UTC+7); used for agency times that carry no offset
HOME_TIMEZONE = timezone(timedelta(hours=7), name="Asia/Bangkok")

# e.g. "2025-03-28 13:20:52 UTC+07:00" or "... UTC"
_UTC_LABEL_RE = re.compile(r"\s*UTC\s*([+-]\d{1,2}(?::?\d{2})?)?\s*$", re.IGNORECASE)


def _normalize_offset(offset: str) -> str:
    """Turn '+7', '+07', '+0700' or '+07:00' into '+07:00'."""
    sign, digits = offset[0], offset[1:].replace(":", "")
    if len(digits) <= 2:
        hours, minutes = digits, "00"
    else:
        hours, minutes = digits[:-2], digits[-2:]
    return f"{sign}{int(hours):02d}:{minutes}"


def _parse_iso(value: str) -> datetime | None:
    text = value
    label = _UTC_LABEL_RE.search(text)
    if label:
        text = text[:label.start()]
        text += _normalize_offset(label.group(1)) if label.group(1) else "+00:00"

    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _parse_rfc822(value: str) -> datetime | None:
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None


def parse_feed_time(
    value: str | None,
    default_tz: timezone = HOME_TIMEZONE,
) -> datetime | None:
    """Resolve a textual feed timestamp to a UTC datetime.

    Pure function.

    Accepts ISO-8601 (space or 'T' separator, optional fraction and offset),
    an optional trailing 'UTC+hh:mm' label, and RFC-822 dates such as an RSS
    pubDate.

    Args:
        value: Raw timestamp text
        default_tz: Zone assumed when the text carries no offset

    Returns:
        UTC-aware datetime, or None if the text cannot be resolved
    """
    if not value or not value.strip():
        return None

    text = value.strip()
    parsed = _parse_iso(text) or _parse_rfc822(text)
    if parsed is None:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=default_tz)

    # Times at the edges of the datetime range cannot be shifted to UTC
    try:
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        return None


def parse_epoch_millis(value: Any) -> datetime | None:
    """Resolve USGS epoch milliseconds to a UTC datetime.

    Pure function.

    Returns:
        UTC-aware datetime, or None for missing or out-of-range input
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        return datetime.fromtimestamp(float(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None
