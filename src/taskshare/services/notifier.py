"""Change notifier: best-effort fan-out of task events.

Delivery is at-most-once. A failed delivery is logged and dropped; clients
recover missed events through their periodic refetch.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from taskshare.models import EventType, Task, TaskEvent
from taskshare.services.access import interested_parties
from taskshare.services.transports import InMemoryTransport, NotificationTransport
from taskshare.utils.logger import get_logger

logger = get_logger().getChild("notifier")


class ChangeNotifier:
    """Fans task events out to every interested identity in parallel."""

    def __init__(self, transport: NotificationTransport | None = None):
        self.transport = transport or InMemoryTransport()

    async def notify(
        self,
        event_type: EventType,
        task: Task,
        actor_id: str,
        *,
        new_recipients: Iterable[str] = (),
        extra_recipients: Iterable[str] = (),
    ) -> list[str]:
        """Publish one event per recipient.

        The audience is the owner and every collaborator of ``task`` (pass the
        pre-deletion snapshot for deletes) plus ``extra_recipients``.

        Returns:
            Identities the event was delivered to, sorted. Never raises.
        """
        try:
            event = TaskEvent.for_task(
                event_type, task, actor_id, new_recipients=list(new_recipients)
            )
            audience = sorted(interested_parties(task) | set(extra_recipients))
        except Exception:
            logger.exception("could not build %s event for task %s", event_type, task.id)
            return []

        results = await asyncio.gather(
            *(self.transport.publish(identity, event) for identity in audience),
            return_exceptions=True,
        )

        delivered = []
        for identity, result in zip(audience, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "dropped %s for task %s to %s: %s",
                    event_type.value,
                    task.id,
                    identity,
                    result,
                )
            else:
                delivered.append(identity)
        logger.debug(
            "%s for task %s delivered to %d/%d",
            event_type.value,
            task.id,
            len(delivered),
            len(audience),
        )
        return delivered

    async def close(self) -> None:
        """Release the transport's resources (open HTTP connections)."""
        await self.transport.close()
