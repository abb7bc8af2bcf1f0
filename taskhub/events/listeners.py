"""Event listeners.

Listeners flagged `should_queue` never run in the request that raised
the event; the dispatcher queues them and a worker calls handle().
"""

import logging
from abc import ABC, abstractmethod
from typing import ClassVar

from sqlmodel import Session, select

from taskhub.events.types import EventType, TaskUpdatedEvent
from taskhub.jobs.queue import JobQueue, get_job_queue
from taskhub.jobs.send_notification import SendNotificationJob
from taskhub.models.user import User

logger = logging.getLogger(__name__)


class EventListener(ABC):
    """Abstract base class for event listeners."""

    should_queue: ClassVar[bool] = False

    @property
    def name(self) -> str:
        """Registry name used to find the listener from a queued job."""
        return self.__class__.__name__

    @abstractmethod
    def handles(self, event_type: EventType) -> bool:
        pass

    @abstractmethod
    def handle(self, session: Session, event: TaskUpdatedEvent) -> None:
        pass


class RecipientResolver(ABC):
    """Decides who is told about an event."""

    @abstractmethod
    def recipients(self, session: Session, event: TaskUpdatedEvent) -> list[User]:
        pass


class AllUsersRecipientResolver(RecipientResolver):
    """Broadcast to every registered user.

    Placeholder targeting: there is no notion of task ownership or
    subscription yet.
    """

    def recipients(self, session: Session, event: TaskUpdatedEvent) -> list[User]:
        return list(session.exec(select(User).order_by(User.id)).all())


class SendTaskNotification(EventListener):
    """Fan a task update out as one notification job per recipient."""

    should_queue = True

    NOTIFICATION_TYPE = "task_updated"
    MESSAGE = "A task has been updated"

    def __init__(
        self,
        resolver: RecipientResolver | None = None,
        queue: JobQueue | None = None,
    ) -> None:
        self.resolver = resolver or AllUsersRecipientResolver()
        self.queue = queue or get_job_queue()

    def handles(self, event_type: EventType) -> bool:
        return event_type == EventType.TASK_UPDATED

    def handle(self, session: Session, event: TaskUpdatedEvent) -> None:
        recipients = self.resolver.recipients(session, event)
        data = {
            "task_id": event.task.id,
            "task_title": event.task.title,
            "message": self.MESSAGE,
            "updated_fields": list(event.updated_fields),
            "updated_at": event.occurred_at.isoformat() + "Z",
        }

        for user in recipients:
            self.queue.push(
                session,
                SendNotificationJob(
                    user_id=user.id,
                    type=self.NOTIFICATION_TYPE,
                    data=dict(data),
                ),
            )

        logger.info(
            "Task update fanned out",
            extra={
                "event_id": str(event.event_id),
                "task_id": event.task.id,
                "recipients": len(recipients),
            },
        )
