from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value):
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp that always round-trips as UTC.

    PostgreSQL keeps the offset natively; SQLite stores naive text, so values are
    normalised to UTC on the way in and re-tagged as UTC on the way out.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = as_utc(value)
        if dialect.name == 'sqlite':
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        return as_utc(value)


def enum_type(enum_cls):
    """Portable VARCHAR-backed enum column type."""
    return Enum(enum_cls, native_enum=False, length=32, validate_strings=True)


def normalize_labels(values):
    """Strip, drop blanks and de-duplicate case-insensitively, keeping first spelling."""
    if values is None:
        return []
    if isinstance(values, str):
        raise ValueError("expected a list of strings, got a bare string")
    seen = set()
    result = []
    for value in values:
        if not isinstance(value, str):
            raise ValueError(f"expected string label, got {type(value).__name__}")
        label = value.strip()
        if not label or label.lower() in seen:
            continue
        seen.add(label.lower())
        result.append(label)
    return result
