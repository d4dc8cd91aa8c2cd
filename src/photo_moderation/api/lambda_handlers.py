"""AWS Lambda entrypoints.

SQS-fed handlers report partial batch failures, so only rejected messages
are redelivered; the function's event source mapping must enable
``ReportBatchItemFailures``. SNS-fed handlers return nothing, as topic
deliveries have no per-message acknowledgement.
"""

from functools import lru_cache
from typing import Any

from photo_moderation.api.transport_models import SnsEvent, SqsEvent
from photo_moderation.app_logging import configure_logging
from photo_moderation.containers import AppContainer, build_container
from photo_moderation.domain.events import InboundMessage
from photo_moderation.services.batches import MessageHandler, process_batch


@lru_cache(maxsize=1)
def get_container() -> AppContainer:
    """Build the process-wide container on first use."""
    configure_logging()
    return build_container()


def _inbound_messages(event: dict[str, Any]) -> list[InboundMessage]:
    """Read the records of a Lambda event from either an SQS or SNS source."""
    if _is_topic_event(event):
        sns_event = SnsEvent.model_validate(event)
        return [record.sns.to_inbound() for record in sns_event.records]
    sqs_event = SqsEvent.model_validate(event)
    return [record.to_inbound() for record in sqs_event.records]


def handle_queue_event(
    event: dict[str, Any], handler: MessageHandler
) -> dict[str, list[dict[str, str]]]:
    """Process an SQS batch and build the partial batch response."""
    report = process_batch(_inbound_messages(event), handler)
    return report.to_sqs_response()


def handle_topic_event(event: dict[str, Any], handler: MessageHandler) -> None:
    """Process an SNS batch; failures are logged by the services."""
    process_batch(_inbound_messages(event), handler)


def ingest_handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    """Validate uploads from the image queue."""
    return handle_queue_event(event, get_container().ingestion_service.handle)


def reclaim_handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    """Delete rejected uploads from the dead-letter queue."""
    return handle_queue_event(event, get_container().reclaimer.handle)


def metadata_handler(event: dict[str, Any], context: object) -> None:
    """Apply metadata updates from the metadata topic."""
    handle_topic_event(event, get_container().metadata_service.handle)


def status_handler(event: dict[str, Any], context: object) -> None:
    """Apply review decisions from the status topic."""
    handle_topic_event(event, get_container().moderation_service.handle)


def mailer_handler(event: dict[str, Any], context: object) -> dict[str, Any] | None:
    """Send notification e-mails from the mailer queue or the status topic."""
    handler = get_container().notification_service.handle
    if _is_topic_event(event):
        handle_topic_event(event, handler)
        return None
    return handle_queue_event(event, handler)


def _is_topic_event(event: dict[str, Any]) -> bool:
    records = event.get("Records") or []
    return bool(records) and "Sns" in records[0]
