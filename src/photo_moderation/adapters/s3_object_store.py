"""S3-backed object store."""

from dataclasses import dataclass
from typing import Any

from botocore.exceptions import ClientError

from photo_moderation.services.ingestion import ObjectStore

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


@dataclass
class S3ObjectStore(ObjectStore):
    """Object store implemented with a boto3 S3 client."""

    client: Any

    def exists(self, bucket: str, key: str) -> bool:
        """Return whether the object is present, using HeadObject."""
        try:
            self.client.head_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return False
            raise
        return True

    def delete(self, bucket: str, key: str) -> None:
        """Delete the object."""
        self.client.delete_object(Bucket=bucket, Key=key)
