"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import boto3

from photo_moderation.adapters.dynamodb_photo_repository import DynamoPhotoRepository
from photo_moderation.adapters.s3_object_store import S3ObjectStore
from photo_moderation.adapters.ses_mailer import SesMailer
from photo_moderation.adapters.sns_publisher import SnsNotificationPublisher
from photo_moderation.adapters.sns_subscription_client import (
    HttpxSubscriptionClient,
    SubscriptionClient,
)
from photo_moderation.config import Settings, parse_recipients, parse_suffixes
from photo_moderation.services.ingestion import IngestionService
from photo_moderation.services.metadata import MetadataService
from photo_moderation.services.moderation import ModerationService
from photo_moderation.services.notifications import NotificationService
from photo_moderation.services.reclaimer import DeadLetterReclaimer


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    ingestion_service: IngestionService
    reclaimer: DeadLetterReclaimer
    metadata_service: MetadataService
    moderation_service: ModerationService
    notification_service: NotificationService
    subscription_client: SubscriptionClient
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    region = resolved_settings.aws_region
    s3_client = boto3.client("s3", region_name=region)
    dynamodb_client = boto3.client("dynamodb", region_name=region)
    sns_client = boto3.client("sns", region_name=region)
    ses_client = boto3.client("ses", region_name=resolved_settings.ses_region)

    object_store = S3ObjectStore(s3_client)
    photo_repository = DynamoPhotoRepository(
        client=dynamodb_client, table_name=resolved_settings.table_name
    )
    publisher = SnsNotificationPublisher(
        client=sns_client, topic_arn=resolved_settings.status_topic_arn
    )
    mailer = SesMailer(client=ses_client, source=resolved_settings.ses_email_from)
    allowed_suffixes = parse_suffixes(resolved_settings.allowed_suffixes)

    ingestion_service = IngestionService(
        object_store=object_store,
        photo_repository=photo_repository,
        allowed_suffixes=allowed_suffixes,
        max_depth=resolved_settings.ingest_max_depth,
    )
    reclaimer = DeadLetterReclaimer(
        object_store=object_store,
        images_bucket=resolved_settings.images_bucket,
        max_depth=resolved_settings.reclaim_max_depth,
    )
    metadata_service = MetadataService(photo_repository)
    moderation_service = ModerationService(
        photo_repository=photo_repository,
        publisher=publisher,
        max_attempts=resolved_settings.status_update_max_attempts,
    )
    notification_service = NotificationService(
        mailer=mailer,
        photo_repository=photo_repository,
        sender=resolved_settings.ses_email_from,
        recipients=parse_recipients(resolved_settings.ses_email_to),
        allowed_suffixes=allowed_suffixes,
        max_depth=resolved_settings.ingest_max_depth,
    )
    subscription_client = HttpxSubscriptionClient.create()

    async def close_resources() -> None:
        await subscription_client.close()

    return AppContainer(
        settings=resolved_settings,
        ingestion_service=ingestion_service,
        reclaimer=reclaimer,
        metadata_service=metadata_service,
        moderation_service=moderation_service,
        notification_service=notification_service,
        subscription_client=subscription_client,
        close_resources=close_resources,
    )
