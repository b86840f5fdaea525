"""Event runtime - one handler per trigger topic.

Each external event (identity created, notification created, schedule tick)
is delivered as an independent unit of work to the handler registered for
its topic. The runtime, not the handlers, owns redelivery: a
TransientProviderFailure is retried with exponential backoff, anything else
is terminal for that delivery.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Set

from .context import RelayContext
from .errors import RelayError, TransientProviderFailure
from .services import dispatcher, identity_gate, sweeper

logger = logging.getLogger(__name__)

Handler = Callable[[RelayContext, Any], Awaitable[Any]]


class Topic(str, Enum):
    IDENTITY_CREATED = "identity.created"
    NOTIFICATION_CREATED = "notification.created"
    SCHEDULE_TICK = "schedule.tick"


class EventBus:
    """Explicit dispatch table from topic to handler."""

    def __init__(self, context: RelayContext, max_attempts: int = 3, base_delay: float = 0.5):
        self.context = context
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self._handlers: Dict[Topic, Handler] = {}
        self._tasks: Set[asyncio.Task] = set()

    def subscribe(self, topic: Topic, handler: Handler):
        if topic in self._handlers:
            raise ValueError(f"Topic {topic.value} already has a handler")
        self._handlers[topic] = handler

    async def publish(self, topic: Topic, payload: Any = None) -> Any:
        """Deliver an event and wait for its handler.

        Raises whatever the final delivery attempt raised.
        """
        handler = self._handlers.get(topic)
        if handler is None:
            raise LookupError(f"No handler subscribed to {topic.value}")

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await handler(self.context, payload)
            except TransientProviderFailure as e:
                if attempt == self.max_attempts:
                    logger.error(f"{topic.value} failed after {attempt} attempt(s): {e}")
                    raise
                delay = self.base_delay * (2 ** (attempt - 1))
                logger.warning(
                    f"{topic.value} transient failure, redelivering in {delay}s "
                    f"(attempt {attempt}/{self.max_attempts}): {e}"
                )
                await asyncio.sleep(delay)

    def publish_background(self, topic: Topic, payload: Any = None) -> asyncio.Task:
        """Deliver an event as its own task; the result is only logged."""
        task = asyncio.create_task(self._deliver(topic, payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver(self, topic: Topic, payload: Any):
        try:
            return await self.publish(topic, payload)
        except RelayError as e:
            logger.warning(f"{topic.value} delivery ended with {e.code}: {e.message}")
        except Exception as e:
            logger.exception(f"{topic.value} handler crashed: {e}")

    async def drain(self):
        """Wait for background deliveries still in flight."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def build_event_bus(context: RelayContext) -> EventBus:
    """Event bus with every trigger topic wired to its handler."""
    bus = EventBus(
        context,
        max_attempts=context.settings.event_max_attempts,
        base_delay=context.settings.event_retry_base_delay,
    )
    bus.subscribe(Topic.IDENTITY_CREATED, identity_gate.handle_identity_created)
    bus.subscribe(Topic.NOTIFICATION_CREATED, dispatcher.handle_notification_created)
    bus.subscribe(Topic.SCHEDULE_TICK, sweeper.handle_schedule_tick)
    return bus
