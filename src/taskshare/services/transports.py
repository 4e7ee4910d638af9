"""Notification transports.

A transport delivers one event to one identity's room. The notifier owns
fan-out and error handling; transports only raise TransportError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import TYPE_CHECKING

import httpx

from taskshare.exceptions import TransportError
from taskshare.models import TaskEvent
from taskshare.utils.logger import get_logger

if TYPE_CHECKING:
    from taskshare.models.config_models import NotificationConfig

logger = get_logger().getChild("transport")


class NotificationTransport(ABC):
    """Delivers events to a per-identity channel."""

    @abstractmethod
    async def publish(self, identity: str, event: TaskEvent) -> None:
        """Deliver ``event`` to ``identity``.

        Raises:
            TransportError: If delivery failed
        """

    async def close(self) -> None:
        """Release any held resources."""


class InMemoryTransport(NotificationTransport):
    """Keeps delivered events in per-identity rooms."""

    def __init__(self):
        self.rooms: dict[str, list[TaskEvent]] = defaultdict(list)

    async def publish(self, identity: str, event: TaskEvent) -> None:
        self.rooms[identity].append(event)

    def events_for(self, identity: str) -> list[TaskEvent]:
        return list(self.rooms.get(identity, []))

    def clear(self) -> None:
        self.rooms.clear()


class LogTransport(NotificationTransport):
    """Writes each delivery to the application log."""

    async def publish(self, identity: str, event: TaskEvent) -> None:
        logger.info(
            "event %s task=%s actor=%s -> %s: %s",
            event.type.value,
            event.task_id,
            event.actor_id,
            identity,
            event.summary,
        )


class NullTransport(NotificationTransport):
    """Drops every event."""

    async def publish(self, identity: str, event: TaskEvent) -> None:
        return None


class WebhookTransport(NotificationTransport):
    """POSTs events as JSON to ``{endpoint}/rooms/{identity}``."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.endpoint,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def publish(self, identity: str, event: TaskEvent) -> None:
        client = self._get_client()
        try:
            response = await client.post(
                f"/rooms/{identity}", json=event.model_dump(mode="json")
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Push to {identity} rejected with HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise TransportError(f"Push to {identity} failed: {e}") from e

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def build_transport(config: NotificationConfig) -> NotificationTransport:
    """Create the transport named by the notification configuration.

    Raises:
        TransportError: If the webhook transport has no endpoint
    """
    if config.transport == "webhook":
        if not config.endpoint:
            raise TransportError("notifications.endpoint is required for the webhook transport")
        return WebhookTransport(config.endpoint, timeout=config.timeout)
    if config.transport == "none":
        return NullTransport()
    return LogTransport()
