"""Cleanup of rejected uploads arriving on the dead-letter queue."""

import logging
from dataclasses import dataclass

from photo_moderation.domain.events import InboundMessage, ObjectEvent
from photo_moderation.domain.outcomes import FailureKind, MessageOutcome
from photo_moderation.services.envelopes import EnvelopeResult, normalize
from photo_moderation.services.ingestion import ObjectStore

_logger = logging.getLogger(__name__)


@dataclass
class DeadLetterReclaimer:
    """Deletes objects whose ingestion message was dead-lettered.

    Reclamation is best-effort: every failure is logged and the message is
    consumed, since the dead-letter queue has no further redrive.
    """

    object_store: ObjectStore
    images_bucket: str | None = None
    max_depth: int = 3

    def handle(self, message: InboundMessage) -> MessageOutcome:
        """Recover the rejected object from a dead-lettered message and delete it."""
        result = self._recover(message.body)
        event = result.event
        if event is None:
            _logger.error(
                "Could not extract bucket and key from dead-letter message %s",
                message.message_id,
            )
            reason = result.error.reason if result.error else "no object event"
            return MessageOutcome.skipped(FailureKind.MALFORMED_ENVELOPE, reason)

        if self.images_bucket and event.bucket != self.images_bucket:
            _logger.warning(
                "Refusing to delete %s from unexpected bucket %s",
                event.key,
                event.bucket,
            )
            return MessageOutcome.skipped(FailureKind.INVALID_MESSAGE, event.bucket)

        return self._delete_if_present(event)

    def _recover(self, body: str) -> EnvelopeResult:
        """Normalize with widening depth until an object event is found."""
        result = EnvelopeResult()
        for depth in range(1, self.max_depth + 1):
            result = normalize(body, depth)
            if result.ok:
                _logger.info("Recovered dead-lettered object at depth %s", depth)
                return result
        return result

    def _delete_if_present(self, event: ObjectEvent) -> MessageOutcome:
        try:
            if not self.object_store.exists(event.bucket, event.key):
                _logger.info(
                    "Object %s already absent from %s", event.key, event.bucket
                )
                return MessageOutcome.accepted(event.key)
            self.object_store.delete(event.bucket, event.key)
        except Exception:
            _logger.exception(
                "Error checking/deleting %s in %s", event.key, event.bucket
            )
            return MessageOutcome.skipped(FailureKind.STORE_WRITE_FAILURE, event.key)
        _logger.info("Removed invalid file %s from bucket %s", event.key, event.bucket)
        return MessageOutcome.accepted(event.key)
