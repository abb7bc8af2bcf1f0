"""Services module.

Services:
- tasks.py: Task CRUD with caching and update event emission
- notifications.py: Per-user notification store
- projects.py / comments.py: Project and task comment CRUD
- users.py / auth.py: Accounts, password hashing and JWT issuing
- errors.py: Typed failures shared by every service
"""

from taskhub.services.errors import (
    AuthenticationError,
    InvalidArgumentError,
    InvalidCredentialsError,
    NotFoundError,
    ServiceError,
    TransientInfraError,
    ValidationFailedError,
)

__all__ = [
    "ServiceError",
    "ValidationFailedError",
    "NotFoundError",
    "InvalidArgumentError",
    "TransientInfraError",
    "AuthenticationError",
    "InvalidCredentialsError",
]
