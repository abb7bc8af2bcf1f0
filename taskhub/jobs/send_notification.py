"""Job that writes one notification record for one user."""

import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar

from sqlmodel import Session

from taskhub.jobs.base import Job
from taskhub.models.notification import Notification
from taskhub.models.user import User
from taskhub.services.errors import NotFoundError

logger = logging.getLogger(__name__)


@dataclass
class SendNotificationJob(Job):
    """Persist a notification for `user_id`.

    The recipient is looked up at execution time; if the account was
    deleted after the job was queued the attempt fails with NotFoundError
    and goes through the normal retry policy. Re-running a job that
    already succeeded inserts a second row.
    """

    job_type: ClassVar[str] = "send_notification"
    tries: ClassVar[int] = 3
    timeout: ClassVar[float] = 60

    user_id: int
    type: str
    data: dict[str, Any] = field(default_factory=dict)

    def handle(self, session: Session) -> None:
        user = session.get(User, self.user_id)
        if user is None:
            raise NotFoundError("user", self.user_id)

        notification = Notification(
            user_id=user.id,
            type=self.type,
            data=dict(self.data),
            read_at=None,
        )
        session.add(notification)
        session.flush()

        logger.info(
            "Notification created",
            extra={
                "notification_id": notification.id,
                "user_id": self.user_id,
                "type": self.type,
            },
        )

    def failed(self, error: str) -> None:
        logger.error(
            "Failed to send notification",
            extra={"user_id": self.user_id, "type": self.type, "error": error},
        )
