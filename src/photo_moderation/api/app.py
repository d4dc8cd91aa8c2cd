"""FastAPI application factory for SNS HTTP(S) subscriptions."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from pydantic import ValidationError

from photo_moderation.api.transport_models import SnsMessage
from photo_moderation.app_logging import configure_logging
from photo_moderation.containers import AppContainer
from photo_moderation.services.batches import MessageHandler


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    async def receive(request: Request, handler: MessageHandler) -> dict[str, str]:
        # SNS posts JSON with a text/plain content type.
        raw = await request.body()
        try:
            message = SnsMessage.model_validate_json(raw)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail="Invalid SNS message") from exc

        state_container: AppContainer = request.app.state.container
        if message.type == "SubscriptionConfirmation":
            if not message.subscribe_url:
                raise HTTPException(status_code=400, detail="Missing SubscribeURL")
            await state_container.subscription_client.confirm(message.subscribe_url)
            logger.info("Confirmed subscription to %s", message.topic_arn)
            return {"status": "confirmed"}
        if message.type == "UnsubscribeConfirmation":
            logger.info("Unsubscribed from %s", message.topic_arn)
            return {"status": "ok"}

        outcome = handler(message.to_inbound())
        if outcome.failure is not None:
            logger.info(
                "Acknowledged %s without effect: %s",
                message.message_id,
                outcome.failure,
            )
        return {"status": "ok"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/sns/metadata")
    async def metadata_subscription(request: Request) -> dict[str, str]:
        """Receive metadata update requests."""
        return await receive(
            request, request.app.state.container.metadata_service.handle
        )

    @app.post("/sns/status")
    async def status_subscription(request: Request) -> dict[str, str]:
        """Receive review status update requests."""
        return await receive(
            request, request.app.state.container.moderation_service.handle
        )

    @app.post("/sns/notifications")
    async def notification_subscription(request: Request) -> dict[str, str]:
        """Receive status-changed notifications to e-mail."""
        return await receive(
            request, request.app.state.container.notification_service.handle
        )

    return app
