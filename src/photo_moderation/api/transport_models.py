"""Pydantic models for queue and topic delivery payloads."""

from pydantic import BaseModel, Field

from photo_moderation.domain.events import InboundMessage


class SqsMessageAttribute(BaseModel):
    """SQS message attribute as delivered to a Lambda function."""

    data_type: str | None = Field(default=None, alias="dataType")
    string_value: str | None = Field(default=None, alias="stringValue")


class SqsRecord(BaseModel):
    """Single SQS record of a Lambda event."""

    message_id: str = Field(alias="messageId")
    body: str
    message_attributes: dict[str, SqsMessageAttribute] = Field(
        default_factory=dict, alias="messageAttributes"
    )

    def to_inbound(self) -> InboundMessage:
        """Convert to the transport-neutral message form."""
        return InboundMessage(
            message_id=self.message_id,
            body=self.body,
            attributes={
                name: attribute.string_value
                for name, attribute in self.message_attributes.items()
                if attribute.string_value is not None
            },
        )


class SqsEvent(BaseModel):
    """Lambda event for an SQS event source."""

    records: list[SqsRecord] = Field(default_factory=list, alias="Records")


class SnsMessageAttribute(BaseModel):
    """SNS message attribute."""

    type: str | None = Field(default=None, alias="Type")
    value: str | None = Field(default=None, alias="Value")


class SnsMessage(BaseModel):
    """SNS message body, shared by Lambda and HTTP(S) deliveries."""

    type: str | None = Field(default=None, alias="Type")
    message_id: str = Field(alias="MessageId")
    topic_arn: str | None = Field(default=None, alias="TopicArn")
    message: str = Field(default="", alias="Message")
    message_attributes: dict[str, SnsMessageAttribute] = Field(
        default_factory=dict, alias="MessageAttributes"
    )
    subscribe_url: str | None = Field(default=None, alias="SubscribeURL")

    def to_inbound(self) -> InboundMessage:
        """Convert to the transport-neutral message form."""
        return InboundMessage(
            message_id=self.message_id,
            body=self.message,
            attributes={
                name: attribute.value
                for name, attribute in self.message_attributes.items()
                if attribute.value is not None
            },
        )


class SnsRecord(BaseModel):
    """Single SNS record of a Lambda event."""

    sns: SnsMessage = Field(alias="Sns")


class SnsEvent(BaseModel):
    """Lambda event for an SNS subscription."""

    records: list[SnsRecord] = Field(default_factory=list, alias="Records")
