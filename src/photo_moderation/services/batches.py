"""Sequential batch processing with per-message outcomes."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from photo_moderation.domain.events import InboundMessage
from photo_moderation.domain.outcomes import (
    Disposition,
    FailureKind,
    MessageOutcome,
)

_logger = logging.getLogger(__name__)

MessageHandler = Callable[[InboundMessage], MessageOutcome]


@dataclass
class BatchReport:
    """Outcomes of one batch, keyed by message id in arrival order."""

    outcomes: dict[str, MessageOutcome] = field(default_factory=dict)

    @property
    def failed_ids(self) -> list[str]:
        """Ids the transport must redeliver (and eventually dead-letter)."""
        return [
            message_id
            for message_id, outcome in self.outcomes.items()
            if outcome.is_failure
        ]

    def count(self, disposition: Disposition) -> int:
        return sum(
            1
            for outcome in self.outcomes.values()
            if outcome.disposition is disposition
        )

    def to_sqs_response(self) -> dict[str, list[dict[str, str]]]:
        """Build a partial batch failure response for an SQS event source."""
        return {
            "batchItemFailures": [
                {"itemIdentifier": message_id} for message_id in self.failed_ids
            ]
        }


def process_batch(
    messages: Iterable[InboundMessage], handler: MessageHandler
) -> BatchReport:
    """Run a handler over every message, one at a time."""
    report = BatchReport()
    for message in messages:
        try:
            outcome = handler(message)
        except Exception:
            _logger.exception(
                "Unhandled error processing message %s", message.message_id
            )
            outcome = MessageOutcome.retryable(FailureKind.UNEXPECTED_ERROR)
        report.outcomes[message.message_id] = outcome
    _logger.info(
        "Processed batch: accepted=%s retryable=%s terminal=%s",
        report.count(Disposition.ACCEPT),
        report.count(Disposition.RETRYABLE),
        report.count(Disposition.TERMINAL),
    )
    return report
