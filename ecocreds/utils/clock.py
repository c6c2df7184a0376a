# ecocreds/utils/clock.py
from datetime import datetime, timezone


def utcnow() -> datetime:
    # naive UTC; SQLite drops tzinfo anyway and all stored datetimes stay comparable
    return datetime.now(timezone.utc).replace(tzinfo=None)
