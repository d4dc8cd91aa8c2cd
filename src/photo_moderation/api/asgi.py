"""ASGI entrypoint for the SNS subscription endpoints."""

from photo_moderation.api.app import create_app
from photo_moderation.containers import build_container

app = create_app(build_container())
