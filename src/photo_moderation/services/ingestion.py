"""Ingestion of uploaded images into the photo table."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from photo_moderation.domain.events import InboundMessage
from photo_moderation.domain.expressions import SetUpdate
from photo_moderation.domain.outcomes import FailureKind, MessageOutcome
from photo_moderation.domain.photos import PhotoRecord, PhotoStatus, has_allowed_suffix
from photo_moderation.services.envelopes import normalize

_logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_SUFFIXES = (".jpg", ".jpeg", ".png")


class ObjectStore(Protocol):
    """Interface for the object storage holding uploaded images."""

    def exists(self, bucket: str, key: str) -> bool:
        """Return whether an object is present."""

    def delete(self, bucket: str, key: str) -> None:
        """Delete an object."""


class PhotoRepository(Protocol):
    """Persistence interface for photo records."""

    def create_pending(self, record: PhotoRecord) -> bool:
        """Write a Pending record unless the photo was already reviewed.

        Returns False when an existing reviewed record was left untouched.
        """

    def get_photo(self, photo_id: str) -> PhotoRecord | None:
        """Return a photo record by id, if present."""

    def apply_update(self, photo_id: str, update: SetUpdate) -> None:
        """Apply a partial update to an existing record."""

    def update_status(  # noqa: PLR0913
        self,
        photo_id: str,
        status: PhotoStatus,
        status_date: str,
        reason: str,
        expected_status: PhotoStatus | None,
    ) -> None:
        """Write review fields if the stored status still equals expected_status.

        Raises ConcurrentUpdateError when the stored status has moved on.
        """


@dataclass
class IngestionService:
    """Validates upload notifications and records Pending photos."""

    object_store: ObjectStore
    photo_repository: PhotoRepository
    allowed_suffixes: tuple[str, ...] = DEFAULT_ALLOWED_SUFFIXES
    max_depth: int = 2

    def handle(self, message: InboundMessage) -> MessageOutcome:
        """Process one queue message carrying an upload notification."""
        result = normalize(message.body, self.max_depth)
        if result.event is None:
            reason = result.error.reason if result.error else "no object event"
            _logger.warning(
                "Skipping message %s: malformed envelope (%s)",
                message.message_id,
                reason,
            )
            return MessageOutcome.skipped(FailureKind.MALFORMED_ENVELOPE, reason)

        event = result.event
        if not has_allowed_suffix(event.key, self.allowed_suffixes):
            _logger.error(
                "Rejecting %s from %s: invalid file type", event.key, event.bucket
            )
            return MessageOutcome.terminal(FailureKind.INVALID_FILE_TYPE, event.key)

        try:
            found = self.object_store.exists(event.bucket, event.key)
        except Exception:
            _logger.exception("Failed to look up %s in %s", event.key, event.bucket)
            return MessageOutcome.retryable(FailureKind.STORE_READ_FAILURE, event.key)
        if not found:
            _logger.warning("Object %s not found in %s", event.key, event.bucket)
            return MessageOutcome.retryable(FailureKind.OBJECT_NOT_FOUND, event.key)

        record = PhotoRecord(
            id=event.key,
            upload_time=datetime.now(tz=UTC),
            status=PhotoStatus.PENDING,
        )
        try:
            created = self.photo_repository.create_pending(record)
        except Exception:
            _logger.exception("Failed to record photo %s", event.key)
            return MessageOutcome.retryable(FailureKind.STORE_WRITE_FAILURE, event.key)

        if created:
            _logger.info("Recorded photo %s as Pending", event.key)
        else:
            _logger.info("Photo %s was already reviewed; record kept", event.key)
        return MessageOutcome.accepted(event.key)
