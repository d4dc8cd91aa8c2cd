"""Per-message processing outcomes."""

from dataclasses import dataclass
from enum import StrEnum


class FailureKind(StrEnum):
    """Classification of why a message was not fully processed."""

    MALFORMED_ENVELOPE = "MalformedEnvelope"
    INVALID_MESSAGE = "InvalidMessage"
    INVALID_FILE_TYPE = "InvalidFileType"
    OBJECT_NOT_FOUND = "ObjectNotFound"
    RECORD_NOT_FOUND = "RecordNotFound"
    INVALID_ATTRIBUTE_NAME = "InvalidAttributeName"
    INVALID_STATUS_VALUE = "InvalidStatusValue"
    STORE_READ_FAILURE = "StoreReadFailure"
    STORE_WRITE_FAILURE = "StoreWriteFailure"
    NOTIFICATION_SEND_FAILURE = "NotificationSendFailure"
    UNEXPECTED_ERROR = "UnexpectedError"


class Disposition(StrEnum):
    """What the transport should do with a message."""

    ACCEPT = "Accept"
    RETRYABLE = "Retryable"
    TERMINAL = "Terminal"


@dataclass(frozen=True)
class MessageOutcome:
    """Result of handling a single message."""

    disposition: Disposition
    failure: FailureKind | None = None
    detail: str = ""

    @classmethod
    def accepted(cls, detail: str = "") -> "MessageOutcome":
        return cls(Disposition.ACCEPT, detail=detail)

    @classmethod
    def skipped(cls, failure: FailureKind, detail: str = "") -> "MessageOutcome":
        """Consume the message without effect after a recoverable violation."""
        return cls(Disposition.ACCEPT, failure=failure, detail=detail)

    @classmethod
    def retryable(cls, failure: FailureKind, detail: str = "") -> "MessageOutcome":
        return cls(Disposition.RETRYABLE, failure=failure, detail=detail)

    @classmethod
    def terminal(cls, failure: FailureKind, detail: str = "") -> "MessageOutcome":
        return cls(Disposition.TERMINAL, failure=failure, detail=detail)

    @property
    def is_failure(self) -> bool:
        """True when the transport must not treat the message as consumed."""
        return self.disposition is not Disposition.ACCEPT
