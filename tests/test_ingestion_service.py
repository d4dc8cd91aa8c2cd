"""Tests for upload ingestion."""

from dataclasses import dataclass

from photo_moderation.domain.outcomes import Disposition, FailureKind
from photo_moderation.domain.photos import PhotoStatus
from photo_moderation.services.ingestion import IngestionService
from tests.conftest import (
    InMemoryObjectStore,
    InMemoryPhotoRepository,
    inbound,
    storage_event,
    stored_photo,
    topic_wrap,
)


def _service() -> tuple[IngestionService, InMemoryObjectStore, InMemoryPhotoRepository]:
    store = InMemoryObjectStore()
    repository = InMemoryPhotoRepository()
    return IngestionService(store, repository), store, repository


def test_ingest_records_pending_photo() -> None:
    service, store, repository = _service()
    store.objects.add(("images", "my photo.jpg"))

    event = topic_wrap(storage_event("images", "my+photo.jpg"))
    outcome = service.handle(inbound(event))

    assert outcome.disposition is Disposition.ACCEPT
    assert outcome.failure is None
    assert repository.photos["my photo.jpg"].status == PhotoStatus.PENDING
    assert store.head_calls == [("images", "my photo.jpg")]


def test_ingest_twice_keeps_single_pending_record() -> None:
    service, store, repository = _service()
    store.objects.add(("images", "photo.png"))
    message = inbound(topic_wrap(storage_event("images", "photo.png")))

    first = service.handle(message)
    second = service.handle(message)

    assert first.disposition is Disposition.ACCEPT
    assert second.disposition is Disposition.ACCEPT
    assert list(repository.photos) == ["photo.png"]
    assert repository.photos["photo.png"].status == PhotoStatus.PENDING


def test_redelivery_does_not_reset_reviewed_photo() -> None:
    service, store, repository = _service()
    store.objects.add(("images", "photo.png"))
    repository.photos["photo.png"] = stored_photo("photo.png", status=PhotoStatus.PASS)

    outcome = service.handle(inbound(topic_wrap(storage_event("images", "photo.png"))))

    assert outcome.disposition is Disposition.ACCEPT
    assert repository.photos["photo.png"].status == PhotoStatus.PASS


def test_ingest_rejects_invalid_file_type_as_terminal() -> None:
    service, store, repository = _service()
    store.objects.add(("images", "photo.gif"))

    outcome = service.handle(inbound(topic_wrap(storage_event("images", "photo.gif"))))

    assert outcome.disposition is Disposition.TERMINAL
    assert outcome.failure is FailureKind.INVALID_FILE_TYPE
    assert repository.photos == {}
    assert store.head_calls == []


def test_ingest_accepts_upper_case_extension() -> None:
    service, store, repository = _service()
    store.objects.add(("images", "PHOTO.JPEG"))

    outcome = service.handle(inbound(topic_wrap(storage_event("images", "PHOTO.JPEG"))))

    assert outcome.disposition is Disposition.ACCEPT
    assert "PHOTO.JPEG" in repository.photos


def test_ingest_missing_object_is_retryable() -> None:
    service, _, repository = _service()

    outcome = service.handle(inbound(topic_wrap(storage_event("images", "gone.png"))))

    assert outcome.disposition is Disposition.RETRYABLE
    assert outcome.failure is FailureKind.OBJECT_NOT_FOUND
    assert repository.photos == {}


def test_ingest_skips_malformed_envelope() -> None:
    service, _, repository = _service()

    outcome = service.handle(inbound("not json"))

    assert outcome.disposition is Disposition.ACCEPT
    assert outcome.failure is FailureKind.MALFORMED_ENVELOPE
    assert repository.photos == {}


def test_ingest_skips_pathologically_nested_body() -> None:
    service, _, repository = _service()

    outcome = service.handle(inbound('{"a":' * 100_000))

    assert outcome.disposition is Disposition.ACCEPT
    assert outcome.failure is FailureKind.MALFORMED_ENVELOPE
    assert repository.photos == {}


@dataclass
class FailingPhotoRepository(InMemoryPhotoRepository):
    def create_pending(self, record) -> bool:  # type: ignore[no-untyped-def]
        raise RuntimeError("ProvisionedThroughputExceeded")


def test_ingest_store_failure_is_retryable() -> None:
    store = InMemoryObjectStore(objects={("images", "photo.png")})
    service = IngestionService(store, FailingPhotoRepository())

    outcome = service.handle(inbound(topic_wrap(storage_event("images", "photo.png"))))

    assert outcome.disposition is Disposition.RETRYABLE
    assert outcome.failure is FailureKind.STORE_WRITE_FAILURE
