"""E-mail notifications for new uploads and review decisions."""

import json
import logging
from dataclasses import dataclass
from html import escape
from typing import Protocol

from pydantic import ValidationError

from photo_moderation.domain.events import (
    InboundMessage,
    NotificationKind,
    NotificationRequest,
    ObjectEvent,
)
from photo_moderation.domain.messages import StatusChangedNotification
from photo_moderation.domain.outcomes import FailureKind, MessageOutcome
from photo_moderation.domain.photos import (
    DEFAULT_PHOTOGRAPHER_NAME,
    has_allowed_suffix,
)
from photo_moderation.services.envelopes import normalize_all
from photo_moderation.services.ingestion import (
    DEFAULT_ALLOWED_SUFFIXES,
    PhotoRepository,
)
from photo_moderation.services.moderation import STATUS_UPDATE_ATTRIBUTE

_logger = logging.getLogger(__name__)

SENDER_DISPLAY_NAME = "The Photo Album"


class Mailer(Protocol):
    """Interface for sending transactional e-mail."""

    def send_email(
        self, recipients: list[str], subject: str, html_body: str, text_body: str
    ) -> None:
        """Send one e-mail to the given recipients."""


@dataclass(frozen=True)
class EmailContent:
    """Rendered e-mail subject and bodies."""

    subject: str
    html_body: str
    text_body: str


def render_new_upload(sender: str, bucket: str, key: str) -> EmailContent:
    """Render the confirmation sent when an image was uploaded."""
    location = f"s3://{bucket}/{key}"
    message = f"We received your Image. Its URL is {location}"
    html_body = (
        "<html><body>"
        "<h2>Sent from: </h2>"
        "<ul>"
        f'<li style="font-size:18px">👤 <b>{escape(SENDER_DISPLAY_NAME)}</b></li>'
        f'<li style="font-size:18px">✉️ <b>{escape(sender)}</b></li>'
        "</ul>"
        f'<p style="font-size:18px">{escape(message)}</p>'
        "</body></html>"
    )
    text_body = (
        "Received an Email. 📬\n"
        "Sent from:\n"
        f"    👤 {SENDER_DISPLAY_NAME}\n"
        f"    ✉️ {sender}\n"
        f"{message}\n"
    )
    return EmailContent("New image Upload", html_body, text_body)


def render_status_update(notification: StatusChangedNotification) -> EmailContent:
    """Render the e-mail announcing a review decision."""
    name = notification.photographer_name or DEFAULT_PHOTOGRAPHER_NAME
    reason = notification.reason or ""
    date = notification.date or ""
    html_body = (
        "<html><body>"
        "<h2>Photo Status Update</h2>"
        f"<p>Hello {escape(name)},</p>"
        f"<p>Your photo ({escape(notification.id)}) has been reviewed and its "
        "status has been updated to: "
        f"<strong>{escape(notification.status)}</strong>.</p>"
        f"<p><strong>Reason:</strong> {escape(reason)}</p>"
        f"<p><strong>Date of review:</strong> {escape(date)}</p>"
        "<p>Thank you for using our Photo Gallery service.</p>"
        "</body></html>"
    )
    text_body = (
        f"Hello {name},\n"
        f"Your photo ({notification.id}) has been reviewed and its status has "
        f"been updated to: {notification.status}.\n"
        f"Reason: {reason}\n"
        f"Date of review: {date}\n"
    )
    return EmailContent(
        f"Photo Review Status Update: {notification.status}", html_body, text_body
    )


def classify(message: InboundMessage) -> NotificationKind:
    """Tell status-change notifications apart from raw upload events."""
    if message.attributes.get(STATUS_UPDATE_ATTRIBUTE) is not None:
        return NotificationKind.STATUS_CHANGED
    if _embedded_attributes(message.body).get(STATUS_UPDATE_ATTRIBUTE) is not None:
        return NotificationKind.STATUS_CHANGED
    return NotificationKind.NEW_UPLOAD


@dataclass
class NotificationService:
    """Composes and sends notification e-mails; delivery is best-effort."""

    mailer: Mailer
    photo_repository: PhotoRepository | None
    sender: str
    recipients: list[str]
    allowed_suffixes: tuple[str, ...] = DEFAULT_ALLOWED_SUFFIXES
    max_depth: int = 2

    def handle(self, message: InboundMessage) -> MessageOutcome:
        """Dispatch one queue or topic message to the matching e-mail path."""
        if classify(message) is NotificationKind.STATUS_CHANGED:
            return self._handle_status_changed(message)
        return self._handle_new_upload(message)

    def _handle_new_upload(self, message: InboundMessage) -> MessageOutcome:
        result = normalize_all(message.body, self.max_depth)
        if not result.ok:
            reason = result.error.reason if result.error else "no object event"
            _logger.warning(
                "Skipping upload notification %s: %s", message.message_id, reason
            )
            return MessageOutcome.skipped(FailureKind.MALFORMED_ENVELOPE, reason)

        failures = 0
        for event in result.events:
            if not has_allowed_suffix(event.key, self.allowed_suffixes):
                _logger.info("Skipping email for invalid file type: %s", event.key)
                continue
            if not self._send_new_upload(event):
                failures += 1
        if failures:
            return MessageOutcome.skipped(
                FailureKind.NOTIFICATION_SEND_FAILURE,
                f"{failures} of {len(result.events)} emails failed",
            )
        return MessageOutcome.accepted()

    def _send_new_upload(self, event: ObjectEvent) -> bool:
        request = NotificationRequest(
            kind=NotificationKind.NEW_UPLOAD,
            payload={"bucket": event.bucket, "key": event.key},
        )
        content = render_new_upload(
            self.sender, request.payload["bucket"], request.payload["key"]
        )
        try:
            self._send(content)
        except Exception:
            _logger.exception("Failed to send upload email for %s", event.key)
            return False
        _logger.info("Email sent successfully for image: %s", event.key)
        return True

    def _handle_status_changed(self, message: InboundMessage) -> MessageOutcome:
        payload = _topic_payload(message.body)
        try:
            notification = StatusChangedNotification.model_validate_json(payload)
        except ValidationError:
            _logger.warning(
                "Invalid status notification %s", message.message_id, exc_info=True
            )
            return MessageOutcome.skipped(FailureKind.INVALID_MESSAGE)

        notification = self._refresh_name(notification)
        try:
            self._send(render_status_update(notification))
        except Exception:
            _logger.exception(
                "Error sending status update email for photo %s", notification.id
            )
            return MessageOutcome.skipped(
                FailureKind.NOTIFICATION_SEND_FAILURE, notification.id
            )
        _logger.info(
            "Status update email sent successfully for photo %s", notification.id
        )
        return MessageOutcome.accepted(notification.id)

    def _refresh_name(
        self, notification: StatusChangedNotification
    ) -> StatusChangedNotification:
        """Fill in the photographer name from the stored record when missing."""
        embedded = notification.photographer_name
        if self.photo_repository is None or (
            embedded and embedded != DEFAULT_PHOTOGRAPHER_NAME
        ):
            return notification
        try:
            record = self.photo_repository.get_photo(notification.id)
        except Exception:
            _logger.exception("Error retrieving photo %s", notification.id)
            return notification
        if record is None or not record.name:
            return notification
        return notification.model_copy(update={"photographer_name": record.name})

    def _send(self, content: EmailContent) -> None:
        self.mailer.send_email(
            self.recipients, content.subject, content.html_body, content.text_body
        )


def _decode(body: str) -> dict[str, object]:
    try:
        decoded = json.loads(body)
    except (ValueError, RecursionError):
        return {}
    return decoded if isinstance(decoded, dict) else {}


def _embedded_attributes(body: str) -> dict[str, object]:
    """Return MessageAttributes of a topic envelope delivered through a queue."""
    attributes = _decode(body).get("MessageAttributes")
    return attributes if isinstance(attributes, dict) else {}


def _topic_payload(body: str) -> str:
    """Unwrap a topic envelope if present, returning the inner JSON text."""
    inner = _decode(body).get("Message")
    if isinstance(inner, str):
        return inner
    if isinstance(inner, dict):
        return json.dumps(inner)
    return body
