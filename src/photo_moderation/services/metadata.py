"""Metadata updates for stored photos."""

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from photo_moderation.domain.errors import RecordNotFoundError
from photo_moderation.domain.events import InboundMessage
from photo_moderation.domain.expressions import SetUpdate, build_set_update
from photo_moderation.domain.messages import MetadataUpdateRequest
from photo_moderation.domain.outcomes import FailureKind, MessageOutcome
from photo_moderation.domain.photos import METADATA_TYPES
from photo_moderation.services.ingestion import PhotoRepository

_logger = logging.getLogger(__name__)

METADATA_TYPE_ATTRIBUTE = "metadata_type"


def build_metadata_update(metadata_type: str, value: str) -> SetUpdate:
    """Build a single-attribute update for an allow-listed metadata type."""
    if metadata_type not in METADATA_TYPES:
        raise ValueError(f"Unsupported metadata type: {metadata_type}")
    return build_set_update({metadata_type.lower(): value})


@dataclass
class MetadataService:
    """Applies caption, date and name updates to photo records."""

    photo_repository: PhotoRepository

    def handle(self, message: InboundMessage) -> MessageOutcome:
        """Apply the metadata update carried by one topic message."""
        try:
            request = MetadataUpdateRequest.model_validate_json(message.body)
        except ValidationError:
            _logger.warning("Invalid metadata message %s", message.message_id)
            return MessageOutcome.skipped(FailureKind.INVALID_MESSAGE)
        if not request.id or not request.value:
            _logger.warning(
                "Metadata message %s must include id and value", message.message_id
            )
            return MessageOutcome.skipped(FailureKind.INVALID_MESSAGE)

        metadata_type = message.attributes.get(METADATA_TYPE_ATTRIBUTE)
        if metadata_type not in METADATA_TYPES:
            _logger.warning(
                "Ignoring metadata update for %s: unsupported type %r",
                request.id,
                metadata_type,
            )
            return MessageOutcome.skipped(
                FailureKind.INVALID_ATTRIBUTE_NAME, str(metadata_type)
            )

        update = build_metadata_update(metadata_type, request.value)
        try:
            self.photo_repository.apply_update(request.id, update)
        except RecordNotFoundError:
            _logger.warning("Photo %s not found; metadata dropped", request.id)
            return MessageOutcome.skipped(FailureKind.RECORD_NOT_FOUND, request.id)
        except Exception:
            _logger.exception(
                "Error updating %s for photo %s", metadata_type, request.id
            )
            return MessageOutcome.skipped(FailureKind.STORE_WRITE_FAILURE, request.id)
        _logger.info("Updated %s for photo %s", metadata_type, request.id)
        return MessageOutcome.accepted(request.id)
