"""Pydantic models for request and notification payloads."""

from pydantic import BaseModel, ConfigDict, Field


class MetadataUpdateRequest(BaseModel):
    """Payload asking to set one metadata attribute on a photo."""

    id: str | None = None
    value: str | None = None


class StatusUpdate(BaseModel):
    """Requested review decision."""

    status: str | None = None
    reason: str | None = None


class StatusUpdateRequest(BaseModel):
    """Payload asking to change a photo's review status."""

    id: str | None = None
    date: str | None = None
    update: StatusUpdate | None = None


class StatusChangedNotification(BaseModel):
    """Payload published after a photo's review status changed."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    photographer_name: str | None = Field(default=None, alias="photographerName")
    status: str
    reason: str | None = None
    date: str | None = None
