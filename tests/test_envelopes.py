"""Tests for envelope normalization."""

import json

import pytest

from photo_moderation.services.envelopes import normalize, normalize_all
from tests.conftest import queue_wrap, storage_event, topic_wrap


def test_normalize_raw_storage_event() -> None:
    result = normalize(json.dumps(storage_event("images", "photo.jpg")), max_depth=0)

    assert result.ok
    assert result.event is not None
    assert result.event.bucket == "images"
    assert result.event.key == "photo.jpg"
    assert result.event.event_time is not None
    assert result.event.event_time.year == 2024
    assert result.depth == 0


def test_normalize_decodes_plus_and_percent_escapes() -> None:
    raw = json.dumps(storage_event("images", "summer+holiday%2Fbeach%C3%A9.png"))

    result = normalize(raw, max_depth=0)

    assert result.event is not None
    assert result.event.key == "summer holiday/beaché.png"


@pytest.mark.parametrize(
    ("wrap", "expected_depth"),
    [
        (lambda payload: payload, 0),
        (topic_wrap, 1),
        (lambda payload: queue_wrap(topic_wrap(payload)), 2),
        (lambda payload: queue_wrap(queue_wrap(topic_wrap(payload))), 3),
    ],
)
def test_normalize_recovers_same_object_through_layers(wrap, expected_depth) -> None:
    raw = json.dumps(wrap(storage_event("images", "a+b.jpeg")))

    result = normalize(raw, max_depth=3)

    assert result.ok
    assert result.event is not None
    assert (result.event.bucket, result.event.key) == ("images", "a b.jpeg")
    assert result.depth == expected_depth


def test_normalize_rejects_nesting_beyond_bound() -> None:
    raw = json.dumps(queue_wrap(queue_wrap(topic_wrap(storage_event("b", "k.png")))))

    result = normalize(raw, max_depth=2)

    assert not result.ok
    assert result.event is None
    assert result.error is not None
    assert "exceeds" in result.error.reason


def test_normalize_accepts_already_decoded_layers() -> None:
    payload = {"Message": storage_event("images", "x.png")}

    result = normalize(payload, max_depth=1)

    assert result.event is not None
    assert result.event.key == "x.png"


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "not json",
        "[]",
        "42",
        "null",
        json.dumps({}),
        json.dumps({"Records": []}),
        json.dumps({"Records": [{"s3": {"bucket": {}, "object": {"key": "k"}}}]}),
        json.dumps({"Records": ["oops"]}),
        json.dumps({"Event": "s3:TestEvent"}),
        json.dumps({"Message": "{broken"}),
        json.dumps({"body": json.dumps({"Message": 7})}),
        "[" * 100_000,
        '{"a":' * 100_000,
    ],
)
def test_normalize_is_total_for_malformed_input(raw: str) -> None:
    result = normalize(raw, max_depth=3)

    assert not result.ok
    assert result.error is not None


def test_normalize_returns_first_record_only() -> None:
    event = storage_event("images", "one.png")
    event["Records"].append(
        {"s3": {"bucket": {"name": "images"}, "object": {"key": "two.png"}}}
    )

    single = normalize(json.dumps(event), max_depth=0)
    every = normalize_all(json.dumps(event), max_depth=0)

    assert [item.key for item in single.events] == ["one.png"]
    assert [item.key for item in every.events] == ["one.png", "two.png"]


def test_normalize_fails_when_first_record_is_malformed() -> None:
    event = {
        "Records": [
            {"s3": {"bucket": {"name": "images"}, "object": {}}},
            {"s3": {"bucket": {"name": "images"}, "object": {"key": "two.png"}}},
        ]
    }

    single = normalize(json.dumps(event), max_depth=0)
    every = normalize_all(json.dumps(event), max_depth=0)

    assert not single.ok
    assert single.error is not None
    assert "first storage record" in single.error.reason
    assert [item.key for item in every.events] == ["two.png"]
