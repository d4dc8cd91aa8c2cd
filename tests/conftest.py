"""Shared test fixtures."""

import json
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime

import pytest

from photo_moderation.config import Settings
from photo_moderation.containers import AppContainer
from photo_moderation.domain.errors import ConcurrentUpdateError, RecordNotFoundError
from photo_moderation.domain.events import InboundMessage
from photo_moderation.domain.expressions import SetUpdate
from photo_moderation.domain.photos import PhotoRecord, PhotoStatus
from photo_moderation.services.ingestion import (
    IngestionService,
    ObjectStore,
    PhotoRepository,
)
from photo_moderation.services.metadata import MetadataService
from photo_moderation.services.moderation import (
    ModerationService,
    NotificationPublisher,
)
from photo_moderation.services.notifications import Mailer, NotificationService
from photo_moderation.services.reclaimer import DeadLetterReclaimer

_FIELDS = {
    "status": "status",
    "statusDate": "status_date",
    "statusReason": "status_reason",
    "caption": "caption",
    "date": "date",
    "name": "name",
}


@dataclass
class InMemoryObjectStore(ObjectStore):
    """In-memory object store for tests."""

    objects: set[tuple[str, str]] = field(default_factory=set)
    head_calls: list[tuple[str, str]] = field(default_factory=list)
    deleted: list[tuple[str, str]] = field(default_factory=list)

    def exists(self, bucket: str, key: str) -> bool:
        self.head_calls.append((bucket, key))
        return (bucket, key) in self.objects

    def delete(self, bucket: str, key: str) -> None:
        self.deleted.append((bucket, key))
        self.objects.discard((bucket, key))


@dataclass
class InMemoryPhotoRepository(PhotoRepository):
    """In-memory photo repository honouring the store's write conditions."""

    photos: dict[str, PhotoRecord] = field(default_factory=dict)
    updates: list[tuple[str, SetUpdate]] = field(default_factory=list)
    status_writes: int = 0

    def create_pending(self, record: PhotoRecord) -> bool:
        existing = self.photos.get(record.id)
        if existing is not None and existing.status != PhotoStatus.PENDING:
            return False
        self.photos[record.id] = PhotoRecord(
            id=record.id,
            upload_time=record.upload_time,
            status=PhotoStatus.PENDING,
        )
        return True

    def get_photo(self, photo_id: str) -> PhotoRecord | None:
        return self.photos.get(photo_id)

    def apply_update(self, photo_id: str, update: SetUpdate) -> None:
        current = self.photos.get(photo_id)
        if current is None:
            raise RecordNotFoundError(photo_id)
        self.updates.append((photo_id, update))
        changes = {_FIELDS[name]: value for name, value in update.assignments.items()}
        self.photos[photo_id] = replace(current, **changes)

    def update_status(  # noqa: PLR0913
        self,
        photo_id: str,
        status: PhotoStatus,
        status_date: str,
        reason: str,
        expected_status: PhotoStatus | None,
    ) -> None:
        current = self.photos.get(photo_id)
        if current is None or current.status != expected_status:
            raise ConcurrentUpdateError(photo_id)
        self.status_writes += 1
        self.photos[photo_id] = replace(
            current, status=status, status_date=status_date, status_reason=reason
        )


@dataclass
class FakePublisher(NotificationPublisher):
    """Publisher that records published notifications."""

    published: list[tuple[dict[str, object], dict[str, str]]] = field(
        default_factory=list
    )

    def publish(self, message: dict[str, object], attributes: dict[str, str]) -> str:
        self.published.append((message, attributes))
        return f"msg-{len(self.published)}"


@dataclass
class FakeMailer(Mailer):
    """Mailer that records sent e-mails."""

    sent: list[dict[str, object]] = field(default_factory=list)
    fail_for: set[str] = field(default_factory=set)

    def send_email(
        self, recipients: list[str], subject: str, html_body: str, text_body: str
    ) -> None:
        for marker in self.fail_for:
            if marker in html_body:
                raise RuntimeError("SES throttled")
        self.sent.append(
            {
                "recipients": recipients,
                "subject": subject,
                "html": html_body,
                "text": text_body,
            }
        )


@dataclass
class FakeSubscriptionClient:
    """Subscription client that records confirmation URLs."""

    confirmed: list[str] = field(default_factory=list)

    async def confirm(self, subscribe_url: str) -> None:
        self.confirmed.append(subscribe_url)


def storage_event(bucket: str, key: str) -> dict[str, object]:
    """Build a raw storage notification for one object."""
    return {
        "Records": [
            {
                "eventTime": "2024-01-01T12:00:00.000Z",
                "s3": {"bucket": {"name": bucket}, "object": {"key": key}},
            }
        ]
    }


def topic_wrap(payload: dict[str, object], **attributes: str) -> dict[str, object]:
    """Wrap a payload the way the topic delivers it to a queue."""
    envelope: dict[str, object] = {
        "Type": "Notification",
        "MessageId": "sns-1",
        "Message": json.dumps(payload),
    }
    if attributes:
        envelope["MessageAttributes"] = {
            name: {"Type": "String", "Value": value}
            for name, value in attributes.items()
        }
    return envelope


def queue_wrap(payload: dict[str, object]) -> dict[str, object]:
    """Wrap a payload the way a queue record carries it."""
    return {"messageId": "sqs-1", "body": json.dumps(payload)}


def inbound(
    body: dict[str, object] | str, message_id: str = "m-1", **attributes: str
) -> InboundMessage:
    """Build an inbound message from a payload."""
    text = body if isinstance(body, str) else json.dumps(body)
    return InboundMessage(message_id=message_id, body=text, attributes=attributes)


def stored_photo(
    photo_id: str, status: PhotoStatus | None = PhotoStatus.PENDING, **fields: str
) -> PhotoRecord:
    """Build a stored record, Pending unless told otherwise."""
    return PhotoRecord(
        id=photo_id,
        upload_time=datetime(2024, 1, 1, tzinfo=UTC),
        status=status,
        **fields,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        table_name="photos",
        images_bucket="images",
        status_topic_arn="arn:aws:sns:eu-west-1:123456789012:status",
        ses_email_from="album@example.com",
        ses_email_to="reviewer@example.com, owner@example.com",
    )


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def photo_repository() -> InMemoryPhotoRepository:
    return InMemoryPhotoRepository()


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def subscription_client() -> FakeSubscriptionClient:
    return FakeSubscriptionClient()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    object_store: InMemoryObjectStore,
    photo_repository: InMemoryPhotoRepository,
    publisher: FakePublisher,
    mailer: FakeMailer,
    subscription_client: FakeSubscriptionClient,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        ingestion_service=IngestionService(object_store, photo_repository),
        reclaimer=DeadLetterReclaimer(object_store, images_bucket="images"),
        metadata_service=MetadataService(photo_repository),
        moderation_service=ModerationService(photo_repository, publisher),
        notification_service=NotificationService(
            mailer=mailer,
            photo_repository=photo_repository,
            sender=settings.ses_email_from,
            recipients=["reviewer@example.com"],
        ),
        subscription_client=subscription_client,
        close_resources=close_resources,
    )
