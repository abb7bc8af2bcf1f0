"""User accounts and the auth payloads built from them."""

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import EmailStr, field_validator
from sqlmodel import Field, Relationship, SQLModel

from taskhub.models.common import PaginationMeta

if TYPE_CHECKING:
    from taskhub.models.notification import Notification
    from taskhub.models.project import Project

# bcrypt refuses longer inputs
BCRYPT_MAX_BYTES = 72


class UserBase(SQLModel):
    """Fields shared by the table and its schemas."""

    name: str = Field(max_length=255)
    email: str = Field(max_length=255, unique=True, index=True)


class User(UserBase, table=True):
    """A registered account. Owns notifications and projects."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    hashed_password: str = Field(max_length=255)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    notifications: list["Notification"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    projects: list["Project"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class UserCreate(SQLModel):
    """Registration body."""

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"The password may not be greater than {BCRYPT_MAX_BYTES} bytes.")
        return value


class UserLogin(SQLModel):
    """Login body."""

    email: EmailStr
    password: str


class UserResponse(SQLModel):
    """Public view of a user; never includes the password hash."""

    id: int
    name: str
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}


class UserListData(SQLModel):
    """Paginated user listing."""

    users: list[UserResponse]
    pagination: PaginationMeta


class DeletedUser(SQLModel):
    """Snapshot of a user returned after deletion."""

    id: int
    name: str
    email: str


class AuthData(SQLModel):
    """Returned by register and login."""

    user: UserResponse
    token: str
    expires_at: datetime


class DeletedUserData(SQLModel):
    message: str
    deleted_user: DeletedUser
