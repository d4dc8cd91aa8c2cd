"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    aws_region: str = "eu-west-1"
    table_name: str
    images_bucket: str | None = None
    status_topic_arn: str
    ses_region: str = "eu-west-1"
    ses_email_from: str
    ses_email_to: str
    allowed_suffixes: str = ".jpg,.jpeg,.png"
    ingest_max_depth: int = 2
    reclaim_max_depth: int = 3
    status_update_max_attempts: int = 3
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_recipients(raw: str) -> list[str]:
    """Parse a comma-separated list of e-mail addresses."""
    return [address.strip() for address in raw.split(",") if address.strip()]


def parse_suffixes(raw: str) -> tuple[str, ...]:
    """Parse the file suffix allow-list, normalising to lower-case '.ext'."""
    suffixes: list[str] = []
    for chunk in raw.split(","):
        value = chunk.strip().lower()
        if not value:
            continue
        if not value.startswith("."):
            value = f".{value}"
        if value not in suffixes:
            suffixes.append(value)
    return tuple(suffixes)
