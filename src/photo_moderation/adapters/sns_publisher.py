"""SNS-backed notification publisher."""

import json
from dataclasses import dataclass
from typing import Any

from photo_moderation.services.moderation import NotificationPublisher


@dataclass
class SnsNotificationPublisher(NotificationPublisher):
    """Publishes JSON notifications to a single SNS topic."""

    client: Any
    topic_arn: str

    def publish(self, message: dict[str, object], attributes: dict[str, str]) -> str:
        """Publish a message with string attributes for filter policies."""
        response = self.client.publish(
            TopicArn=self.topic_arn,
            Message=json.dumps(message),
            MessageAttributes={
                name: {"DataType": "String", "StringValue": value}
                for name, value in attributes.items()
            },
        )
        return str(response.get("MessageId", ""))
