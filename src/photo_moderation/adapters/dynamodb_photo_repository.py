"""DynamoDB-backed photo repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import ClientError

from photo_moderation.domain.errors import ConcurrentUpdateError, RecordNotFoundError
from photo_moderation.domain.expressions import SetUpdate, build_set_update
from photo_moderation.domain.photos import PhotoRecord, PhotoStatus, parse_status
from photo_moderation.services.ingestion import PhotoRepository

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _serialize(value: object) -> dict[str, Any]:
    return _serializer.serialize(value)


def _is_conditional_failure(exc: ClientError) -> bool:
    code = exc.response.get("Error", {}).get("Code")
    return code == "ConditionalCheckFailedException"


@dataclass
class DynamoPhotoRepository(PhotoRepository):
    """DynamoDB implementation for photo records keyed by ``id``."""

    client: Any
    table_name: str

    def create_pending(self, record: PhotoRecord) -> bool:
        """Put a Pending record unless a reviewed one already exists."""
        item = {
            "id": record.id,
            "uploadTime": record.upload_time.isoformat(),
            "status": str(PhotoStatus.PENDING),
        }
        try:
            self.client.put_item(
                TableName=self.table_name,
                Item={key: _serialize(value) for key, value in item.items()},
                ConditionExpression="attribute_not_exists(id) OR #status = :pending",
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={
                    ":pending": _serialize(str(PhotoStatus.PENDING))
                },
            )
        except ClientError as exc:
            if _is_conditional_failure(exc):
                return False
            raise
        return True

    def get_photo(self, photo_id: str) -> PhotoRecord | None:
        """Return a photo record by id, if present."""
        response = self.client.get_item(
            TableName=self.table_name,
            Key={"id": _serialize(photo_id)},
            ConsistentRead=True,
        )
        item = response.get("Item")
        if not item:
            return None
        row = {key: _deserializer.deserialize(value) for key, value in item.items()}
        return _to_record(row)

    def apply_update(self, photo_id: str, update: SetUpdate) -> None:
        """Apply a partial update to an existing record."""
        kwargs: dict[str, Any] = {
            "TableName": self.table_name,
            "Key": {"id": _serialize(photo_id)},
            "UpdateExpression": update.expression,
            "ConditionExpression": "attribute_exists(id)",
            "ExpressionAttributeValues": {
                placeholder: _serialize(value)
                for placeholder, value in update.values.items()
            },
        }
        if update.names:
            kwargs["ExpressionAttributeNames"] = dict(update.names)
        try:
            self.client.update_item(**kwargs)
        except ClientError as exc:
            if _is_conditional_failure(exc):
                raise RecordNotFoundError(photo_id) from exc
            raise

    def update_status(  # noqa: PLR0913
        self,
        photo_id: str,
        status: PhotoStatus,
        status_date: str,
        reason: str,
        expected_status: PhotoStatus | None,
    ) -> None:
        """Write review fields guarded by the previously observed status."""
        update = build_set_update(
            {
                "status": str(status),
                "statusDate": status_date,
                "statusReason": reason,
            }
        )
        names = {**update.names, "#current": "status"}
        values = {
            placeholder: _serialize(value)
            for placeholder, value in update.values.items()
        }
        if expected_status is None:
            condition = "attribute_exists(id) AND attribute_not_exists(#current)"
        else:
            condition = "#current = :expected"
            values[":expected"] = _serialize(str(expected_status))
        try:
            self.client.update_item(
                TableName=self.table_name,
                Key={"id": _serialize(photo_id)},
                UpdateExpression=update.expression,
                ConditionExpression=condition,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )
        except ClientError as exc:
            if _is_conditional_failure(exc):
                raise ConcurrentUpdateError(photo_id) from exc
            raise


def _to_record(row: dict[str, Any]) -> PhotoRecord:
    return PhotoRecord(
        id=str(row["id"]),
        upload_time=_parse_time(row.get("uploadTime")),
        status=parse_status(row.get("status")),
        status_date=row.get("statusDate"),
        status_reason=row.get("statusReason"),
        caption=row.get("caption"),
        date=row.get("date"),
        name=row.get("name"),
    )


def _parse_time(raw: object) -> datetime:
    if isinstance(raw, str):
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            pass
    return datetime.fromtimestamp(0, tz=UTC)
