"""Domain events and their listeners.

Components:
- types.py: Event type definitions
- listeners.py: Listener base, recipient resolution, task notification fan-out
- dispatcher.py: Routes events to sync or queue-backed listeners
"""

from taskhub.events.dispatcher import EventDispatcher, get_event_dispatcher
from taskhub.events.listeners import (
    AllUsersRecipientResolver,
    EventListener,
    RecipientResolver,
    SendTaskNotification,
)
from taskhub.events.types import EventType, TaskSnapshot, TaskUpdatedEvent, parse_event

__all__ = [
    "EventType",
    "TaskSnapshot",
    "TaskUpdatedEvent",
    "parse_event",
    "EventListener",
    "RecipientResolver",
    "AllUsersRecipientResolver",
    "SendTaskNotification",
    "EventDispatcher",
    "get_event_dispatcher",
]
