"""Event type definitions for the task lifecycle."""

from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Versioned event types."""

    TASK_UPDATED = "task.updated.v1"


class TaskSnapshot(BaseModel):
    """Task state captured when the event was raised."""

    id: int
    title: str
    description: str | None = None
    status: str
    due_date: date | None = None

    model_config = {"frozen": True, "from_attributes": True}


class TaskUpdatedEvent(BaseModel):
    """A task was modified.

    `updated_fields` lists only the attributes whose value changed, in
    schema field order. The event is never persisted on its own; its JSON form
    travels inside the queued listener job.
    """

    event_id: UUID = Field(default_factory=uuid4, description="Unique event identifier")
    event_type: EventType = Field(default=EventType.TASK_UPDATED)
    task: TaskSnapshot
    updated_fields: tuple[str, ...]
    occurred_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Event timestamp (UTC)",
    )

    model_config = {"frozen": True}

    @classmethod
    def for_task(cls, task: Any, updated_fields: list[str]) -> "TaskUpdatedEvent":
        return cls(
            task=TaskSnapshot.model_validate(task),
            updated_fields=tuple(updated_fields),
        )


EVENT_MODELS: dict[EventType, type[BaseModel]] = {
    EventType.TASK_UPDATED: TaskUpdatedEvent,
}


def parse_event(payload: dict[str, Any]) -> TaskUpdatedEvent:
    """Rebuild an event from its JSON form."""
    event_type = EventType(payload["event_type"])
    return EVENT_MODELS[event_type].model_validate(payload)
