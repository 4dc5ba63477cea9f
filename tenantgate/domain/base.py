from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; they are stored as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
