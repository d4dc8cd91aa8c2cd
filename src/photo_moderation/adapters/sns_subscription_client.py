"""Confirmation of SNS HTTP(S) subscriptions."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class SubscriptionClient(Protocol):
    """Interface for confirming topic subscriptions."""

    async def confirm(self, subscribe_url: str) -> None:
        """Visit the confirmation URL sent by the topic."""


@dataclass
class HttpxSubscriptionClient:
    """Subscription client implemented with httpx."""

    http_client: httpx.AsyncClient

    @classmethod
    def create(cls) -> "HttpxSubscriptionClient":
        """Create a subscription client with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient())

    async def confirm(self, subscribe_url: str) -> None:
        """Confirm a subscription by fetching its SubscribeURL."""
        response = await self.http_client.get(subscribe_url, timeout=10)
        response.raise_for_status()

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()
