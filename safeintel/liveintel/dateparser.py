import re
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as du_parser
from dateutil.tz import gettz

DEFAULT_TZ = "Africa/Lagos"


def parse_seendate(seendate: str) -> Optional[datetime]:
    """Parse a GDELT seendate ('20250114T093000Z' or '20250114093000')."""
    digits = re.sub(r"\D", "", seendate or "")
    if len(digits) < 8:
        return None
    try:
        if len(digits) >= 14:
            dt = datetime.strptime(digits[:14], "%Y%m%d%H%M%S")
        else:
            dt = datetime.strptime(digits[:8], "%Y%m%d")
    except ValueError:
        return None
    return dt.replace(tzinfo=timezone.utc)


def parse_incident_datetime(date_text: Optional[str], time_text: Optional[str] = None,
                            tz_name: str = DEFAULT_TZ) -> Optional[datetime]:
    """
    Parse the free-form date (and optional time) a classifier extracted.

    GDELT-shaped values are accepted too. Naive results are placed in the
    local timezone of the monitored region.
    """
    if not date_text:
        return None

    text = str(date_text).strip()
    if re.fullmatch(r"\d{8}(T?\d{6}Z?)?", text):
        return parse_seendate(text)

    if time_text:
        text = f"{text} {str(time_text).strip()}"

    try:
        dt = du_parser.parse(text, fuzzy=True, dayfirst=False)
    except (ValueError, OverflowError):
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=gettz(tz_name))
    return dt


def parse_iso(dt_str: Optional[str]) -> Optional[datetime]:
    if not dt_str:
        return None
    try:
        dt = datetime.fromisoformat(dt_str.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_seen_date(seendate: str, now: Optional[datetime] = None) -> str:
    """Relative wording for a report date: 'Today', '3 days ago', ..."""
    dt = parse_seendate(seendate)
    if dt is None:
        return 'Unknown date'

    now = now or datetime.now(timezone.utc)
    diff_days = (now.date() - dt.date()).days

    if diff_days == 0:
        return 'Today'
    if diff_days == 1:
        return 'Yesterday'
    if diff_days < 7:
        return f'{diff_days} days ago'
    if diff_days < 30:
        return f'{diff_days // 7} weeks ago'
    if diff_days < 365:
        return f'{diff_days // 30} months ago'
    return f'{diff_days // 365} years ago'


def format_last_updated(iso_string: Optional[str], now: Optional[datetime] = None) -> str:
    dt = parse_iso(iso_string)
    if dt is None:
        return 'Unknown'

    now = now or datetime.now(timezone.utc)
    minutes = int((now - dt).total_seconds() // 60)

    if minutes < 1:
        return 'Just now'
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes > 1 else ''} ago"

    hours = minutes // 60
    if hours < 24:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"

    days = hours // 24
    if days < 7:
        return f"{days} day{'s' if days > 1 else ''} ago"

    return dt.strftime('%Y-%m-%d')


def is_breaking_news(seendate: str, now: Optional[datetime] = None) -> bool:
    """True when the report was first seen within the last 24 hours."""
    dt = parse_seendate(seendate)
    if dt is None:
        return False
    now = now or datetime.now(timezone.utc)
    hours = (now - dt).total_seconds() / 3600
    return 0 <= hours <= 24
