"""Bounded-depth normalization of nested transport envelopes.

A storage notification reaches a handler wrapped in up to three transport
layers: the topic wraps it under ``Message``, the queue wraps that under
``body`` and a dead-letter redrive may wrap it once more. Every layer is
serialized JSON (or, when a caller already decoded it, a mapping).

``normalize`` is total: any input yields either an ``ObjectEvent`` or a
``MalformedEnvelope`` and never raises.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import unquote_plus

from photo_moderation.domain.events import (
    MalformedEnvelope,
    MessageEnvelope,
    ObjectEvent,
    QueueEnvelope,
    StorageEvent,
    TopicEnvelope,
)

MAX_SUPPORTED_DEPTH = 4


@dataclass(frozen=True)
class EnvelopeResult:
    """Outcome of normalizing a single envelope."""

    events: tuple[ObjectEvent, ...] = ()
    error: MalformedEnvelope | None = None
    depth: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.events)

    @property
    def event(self) -> ObjectEvent | None:
        """Return the first object event, if any."""
        return self.events[0] if self.events else None


def normalize(raw: str | dict, max_depth: int) -> EnvelopeResult:
    """Recover the object event of the first storage record."""
    unwrapped = _unwrap(raw, max_depth)
    if isinstance(unwrapped, EnvelopeResult):
        return unwrapped
    envelope, depth = unwrapped
    event = _object_event(envelope.records[0])
    if event is None:
        return _failure("first storage record carries no bucket and key", depth)
    return EnvelopeResult(events=(event,), depth=depth)


def normalize_all(raw: str | dict, max_depth: int) -> EnvelopeResult:
    """Recover every object event of the terminal storage notification."""
    unwrapped = _unwrap(raw, max_depth)
    if isinstance(unwrapped, EnvelopeResult):
        return unwrapped
    envelope, depth = unwrapped
    events = tuple(
        event
        for event in (_object_event(record) for record in envelope.records)
        if event is not None
    )
    if not events:
        return _failure("storage records carry no bucket and key", depth)
    return EnvelopeResult(events=events, depth=depth)


def _unwrap(
    raw: str | dict, max_depth: int
) -> tuple[StorageEvent, int] | EnvelopeResult:
    """Peel transport layers until a storage event or a failure is reached."""
    depth = 0
    payload: object = raw
    while True:
        envelope = _parse(payload)
        if isinstance(envelope, MalformedEnvelope):
            return _failure(envelope.reason, depth)
        if isinstance(envelope, StorageEvent):
            return envelope, depth
        if depth >= min(max_depth, MAX_SUPPORTED_DEPTH):
            return _failure(f"nesting exceeds {max_depth} layers", depth)
        depth += 1
        payload = (
            envelope.body if isinstance(envelope, QueueEnvelope) else envelope.message
        )


def _parse(payload: object) -> MessageEnvelope | MalformedEnvelope:
    """Classify one layer of an envelope."""
    if isinstance(payload, str | bytes):
        try:
            payload = json.loads(payload)
        except (ValueError, RecursionError):
            return MalformedEnvelope("payload is not valid JSON")
    if not isinstance(payload, dict):
        return MalformedEnvelope("payload is not a JSON object")
    if payload.get("body") is not None:
        return QueueEnvelope(body=payload["body"])
    if payload.get("Message") is not None:
        return TopicEnvelope(message=payload["Message"])
    records = payload.get("Records")
    if isinstance(records, list) and records:
        return StorageEvent(records=records)
    return MalformedEnvelope("no recognizable envelope shape")


def _object_event(record: object) -> ObjectEvent | None:
    if not isinstance(record, dict):
        return None
    s3 = record.get("s3")
    if not isinstance(s3, dict):
        return None
    bucket = s3.get("bucket")
    obj = s3.get("object")
    if not isinstance(bucket, dict) or not isinstance(obj, dict):
        return None
    name = bucket.get("name")
    key = obj.get("key")
    if not isinstance(name, str) or not isinstance(key, str) or not key:
        return None
    # Keys arrive form-encoded: '+' is a space, everything else percent-encoded.
    return ObjectEvent(
        bucket=name,
        key=unquote_plus(key),
        event_time=_parse_event_time(record.get("eventTime")),
    )


def _parse_event_time(raw: object) -> datetime | None:
    if not isinstance(raw, str):
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None


def _failure(reason: str, depth: int) -> EnvelopeResult:
    return EnvelopeResult(error=MalformedEnvelope(reason, depth=depth), depth=depth)
