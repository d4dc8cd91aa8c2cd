"""Domain models for uploaded photos and their review state."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class PhotoStatus(StrEnum):
    """Review status of a photo."""

    PENDING = "Pending"
    PASS = "Pass"
    REJECT = "Reject"


REVIEW_STATUSES = frozenset({PhotoStatus.PASS, PhotoStatus.REJECT})

# Wire values of the metadata_type message attribute.
METADATA_TYPES = frozenset({"Caption", "Date", "name"})

DEFAULT_PHOTOGRAPHER_NAME = "Photographer"


@dataclass(frozen=True)
class PhotoRecord:
    """Represents a photo record stored in the key-value store."""

    id: str
    upload_time: datetime
    status: PhotoStatus | None = PhotoStatus.PENDING
    status_date: str | None = None
    status_reason: str | None = None
    caption: str | None = None
    date: str | None = None
    name: str | None = None


def parse_status(raw: object) -> PhotoStatus | None:
    """Return the status for a stored or wire value, if recognised."""
    try:
        return PhotoStatus(str(raw))
    except ValueError:
        return None


def has_allowed_suffix(key: str, suffixes: tuple[str, ...]) -> bool:
    """Check a key against a case-insensitive suffix allow-list."""
    return key.lower().endswith(tuple(suffix.lower() for suffix in suffixes))
