"""Moderation state machine for photo review decisions."""

import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from photo_moderation.domain.errors import ConcurrentUpdateError
from photo_moderation.domain.events import (
    InboundMessage,
    NotificationKind,
    NotificationRequest,
)
from photo_moderation.domain.messages import StatusUpdateRequest
from photo_moderation.domain.outcomes import FailureKind, MessageOutcome
from photo_moderation.domain.photos import (
    DEFAULT_PHOTOGRAPHER_NAME,
    REVIEW_STATUSES,
    PhotoRecord,
    PhotoStatus,
    parse_status,
)
from photo_moderation.services.ingestion import PhotoRepository

_logger = logging.getLogger(__name__)

STATUS_UPDATE_ATTRIBUTE = "status_update"


class NotificationPublisher(Protocol):
    """Interface for publishing notifications to a topic."""

    def publish(self, message: dict[str, object], attributes: dict[str, str]) -> str:
        """Publish a JSON message with string attributes and return its id."""


@dataclass
class ModerationService:
    """Applies review decisions and announces status changes.

    Pending is assigned only at ingestion; reviews move a photo to Pass or
    Reject and may flip between them. The status write is conditional on the
    status read just before it, so the change decision always matches what
    the store actually held when the write landed.
    """

    photo_repository: PhotoRepository
    publisher: NotificationPublisher
    max_attempts: int = 3

    def handle(self, message: InboundMessage) -> MessageOutcome:
        """Apply the status update carried by one topic message."""
        try:
            request = StatusUpdateRequest.model_validate_json(message.body)
        except ValidationError:
            _logger.warning("Invalid status update message %s", message.message_id)
            return MessageOutcome.skipped(FailureKind.INVALID_MESSAGE)
        update = request.update
        if (
            not request.id
            or not request.date
            or update is None
            or not update.status
            or not update.reason
        ):
            _logger.warning(
                "Invalid message format for status update %s", message.message_id
            )
            return MessageOutcome.skipped(FailureKind.INVALID_MESSAGE)

        target = parse_status(update.status)
        if target not in REVIEW_STATUSES:
            _logger.warning(
                "Invalid status value %r for photo %s. Must be Pass or Reject.",
                update.status,
                request.id,
            )
            return MessageOutcome.skipped(
                FailureKind.INVALID_STATUS_VALUE, update.status
            )

        return self.review(request.id, target, request.date, update.reason)

    def review(
        self, photo_id: str, target: PhotoStatus, date: str, reason: str
    ) -> MessageOutcome:
        """Write a review decision and notify when the status changed."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                record = self.photo_repository.get_photo(photo_id)
            except Exception:
                _logger.exception("Failed to read photo %s", photo_id)
                return MessageOutcome.skipped(FailureKind.STORE_READ_FAILURE, photo_id)
            if record is None:
                _logger.warning("Photo %s not found in the database", photo_id)
                return MessageOutcome.skipped(FailureKind.RECORD_NOT_FOUND, photo_id)

            try:
                self.photo_repository.update_status(
                    photo_id,
                    status=target,
                    status_date=date,
                    reason=reason,
                    expected_status=record.status,
                )
            except ConcurrentUpdateError:
                _logger.info(
                    "Status of %s changed concurrently (attempt %s/%s)",
                    photo_id,
                    attempt,
                    self.max_attempts,
                )
                continue
            except Exception:
                _logger.exception("Error updating status for photo %s", photo_id)
                return MessageOutcome.skipped(FailureKind.STORE_WRITE_FAILURE, photo_id)

            _logger.info("Updated status for photo %s to %s", photo_id, target)
            if record.status == target:
                return MessageOutcome.accepted(photo_id)
            return self._announce(record, target, date, reason)

        _logger.error(
            "Giving up on status update for %s after %s attempts",
            photo_id,
            self.max_attempts,
        )
        return MessageOutcome.skipped(FailureKind.STORE_WRITE_FAILURE, photo_id)

    def _announce(
        self, record: PhotoRecord, status: PhotoStatus, date: str, reason: str
    ) -> MessageOutcome:
        notification = NotificationRequest(
            kind=NotificationKind.STATUS_CHANGED,
            payload={
                "id": record.id,
                "photographerName": record.name or DEFAULT_PHOTOGRAPHER_NAME,
                "status": str(status),
                "reason": reason,
                "date": date,
            },
        )
        try:
            self.publisher.publish(
                dict(notification.payload), {STATUS_UPDATE_ATTRIBUTE: "true"}
            )
        except Exception:
            _logger.exception(
                "Failed to publish status notification for photo %s", record.id
            )
            return MessageOutcome.skipped(
                FailureKind.NOTIFICATION_SEND_FAILURE, record.id
            )
        _logger.info("Published status update notification for photo %s", record.id)
        return MessageOutcome.accepted(record.id)
