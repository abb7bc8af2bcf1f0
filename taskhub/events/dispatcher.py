"""Routes domain events to their listeners.

Event Flow:
    TaskService.update → EventDispatcher.dispatch
        ├─ sync listeners: handle() in the caller's transaction
        └─ queued listeners: CallQueuedListener row in the same transaction
                 ↓ (worker)
           listener.handle() → SendNotificationJob per recipient
"""

import logging

from sqlmodel import Session

from taskhub.events.listeners import EventListener, SendTaskNotification
from taskhub.events.types import TaskUpdatedEvent
from taskhub.jobs.call_queued_listener import CallQueuedListener
from taskhub.jobs.queue import JobQueue, get_job_queue

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Central dispatcher that routes events to registered listeners.

    Errors raised by a synchronous listener, or by queueing a deferred
    one, propagate so the emitting transaction rolls back with them.
    """

    def __init__(
        self,
        queue: JobQueue | None = None,
        register_defaults: bool = True,
    ) -> None:
        self._queue = queue or get_job_queue()
        self._listeners: list[EventListener] = []
        if register_defaults:
            self._register_default_listeners()

    def _register_default_listeners(self) -> None:
        self.register(SendTaskNotification(queue=self._queue))

    def register(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def get_listener(self, name: str) -> EventListener:
        """Find a registered listener by name."""
        for listener in self._listeners:
            if listener.name == name:
                return listener
        raise LookupError(f"No listener registered as '{name}'")

    def dispatch(self, session: Session, event: TaskUpdatedEvent) -> None:
        """Deliver `event` to every listener that handles its type.

        Args:
            session: Session of the transaction that raised the event
            event: The event to deliver
        """
        for listener in self._listeners:
            if not listener.handles(event.event_type):
                continue

            if listener.should_queue:
                self._queue.push(
                    session,
                    CallQueuedListener(
                        listener=listener.name,
                        event=event.model_dump(mode="json"),
                    ),
                )
                logger.info(
                    "Listener queued",
                    extra={
                        "listener": listener.name,
                        "event_id": str(event.event_id),
                        "event_type": event.event_type.value,
                    },
                )
            else:
                listener.handle(session, event)


_dispatcher_instance: EventDispatcher | None = None


def get_event_dispatcher() -> EventDispatcher:
    """Get or create the event dispatcher singleton."""
    global _dispatcher_instance
    if _dispatcher_instance is None:
        _dispatcher_instance = EventDispatcher()
    return _dispatcher_instance
