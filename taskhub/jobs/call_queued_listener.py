"""Job that runs a queue-backed event listener on a worker."""

import logging
from dataclasses import dataclass
from typing import Any, ClassVar

from sqlmodel import Session

from taskhub.jobs.base import Job

logger = logging.getLogger(__name__)


@dataclass
class CallQueuedListener(Job):
    """Deliver a serialized event to the listener registered as `listener`."""

    job_type: ClassVar[str] = "call_queued_listener"

    listener: str
    event: dict[str, Any]

    def handle(self, session: Session) -> None:
        # Imported here: the dispatcher itself queues this job
        from taskhub.events.dispatcher import get_event_dispatcher
        from taskhub.events.types import parse_event

        target = get_event_dispatcher().get_listener(self.listener)
        event = parse_event(self.event)
        target.handle(session, event)

        logger.info(
            "Queued listener handled event",
            extra={
                "listener": self.listener,
                "event_id": str(event.event_id),
                "event_type": event.event_type.value,
            },
        )

    def failed(self, error: str) -> None:
        logger.error(
            "Queued listener permanently failed",
            extra={
                "listener": self.listener,
                "event_id": self.event.get("event_id"),
                "error": error,
            },
        )
