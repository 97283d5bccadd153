# guestpost/utils/datetime_utils.py
from datetime import datetime, timezone

from guestpost.core.errors import BadRequestError


def utcnow() -> datetime:
    """Naive UTC timestamp, the form pymongo hands back for stored dates."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_datetime(value):
    if value is None or value == "" or isinstance(value, datetime):
        return value or None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise BadRequestError(f"Invalid date: {value}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
