"""SQLModel entities for the taskhub application."""

from taskhub.models.comment import Comment
from taskhub.models.notification import Notification
from taskhub.models.project import Project
from taskhub.models.queued_job import JobStatus, QueuedJob
from taskhub.models.task import Task, TaskStatus
from taskhub.models.user import User

__all__ = [
    "User",
    "Task",
    "TaskStatus",
    "Project",
    "Comment",
    "Notification",
    "QueuedJob",
    "JobStatus",
]
