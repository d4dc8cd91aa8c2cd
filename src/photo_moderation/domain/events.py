"""Domain models for storage events and transport messages."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


@dataclass(frozen=True)
class ObjectEvent:
    """Canonical reference to an object named by a storage event."""

    bucket: str
    key: str
    event_time: datetime | None = None


@dataclass(frozen=True)
class MalformedEnvelope:
    """Classified failure to recover an object event from an envelope."""

    reason: str
    depth: int = 0


@dataclass(frozen=True)
class TopicEnvelope:
    """Pub/sub wrapper: the inner payload sits under ``Message``."""

    message: object


@dataclass(frozen=True)
class QueueEnvelope:
    """Queue wrapper: the inner payload sits under ``body``."""

    body: object


@dataclass(frozen=True)
class StorageEvent:
    """Terminal storage notification carrying a ``Records`` list."""

    records: list[object]


MessageEnvelope = TopicEnvelope | QueueEnvelope | StorageEvent


@dataclass(frozen=True)
class InboundMessage:
    """Transport-neutral view of one queue or topic message."""

    message_id: str
    body: str
    attributes: dict[str, str] = field(default_factory=dict)


class NotificationKind(StrEnum):
    """Kinds of notification handled by the dispatcher."""

    NEW_UPLOAD = "NewUpload"
    STATUS_CHANGED = "StatusChanged"


@dataclass(frozen=True)
class NotificationRequest:
    """A notification to be composed and delivered."""

    kind: NotificationKind
    payload: dict[str, str]
