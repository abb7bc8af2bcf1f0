"""Accounts, password hashing and JWT issuing."""

import logging
from datetime import datetime, timedelta

import bcrypt
from jose import JWTError, jwt
from sqlmodel import Session, select

from taskhub.config import get_settings
from taskhub.models.user import BCRYPT_MAX_BYTES, AuthData, User, UserCreate, UserResponse
from taskhub.services.errors import (
    AuthenticationError,
    InvalidCredentialsError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    password = plain_password.encode("utf-8")
    # No stored hash can match a password registration would have refused
    if len(password) > BCRYPT_MAX_BYTES:
        return False
    return bcrypt.checkpw(password, hashed_password.encode("utf-8"))


def generate_jwt(user_id: int) -> tuple[str, datetime]:
    """Sign a token for `user_id`; returns the token and its expiry (UTC)."""
    settings = get_settings()
    issued_at = datetime.utcnow()
    expires_at = issued_at + timedelta(hours=settings.JWT_EXPIRATION_HOURS)
    token = jwt.encode(
        {"sub": str(user_id), "iat": issued_at, "exp": expires_at},
        settings.AUTH_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    return token, expires_at


def decode_jwt(token: str) -> int:
    """Return the user id carried by a valid token."""
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.AUTH_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise AuthenticationError("Invalid or expired token.") from e

    subject = str(claims.get("sub", ""))
    if not subject.isdigit():
        raise AuthenticationError("Invalid or expired token.")
    return int(subject)


def get_user_by_email(session: Session, email: str) -> User | None:
    # Emails are stored lowercased
    return session.exec(select(User).where(User.email == email.lower())).first()


def register_user(session: Session, user_data: UserCreate) -> User:
    """Create an account; a taken email is a validation failure on `email`."""
    if get_user_by_email(session, user_data.email) is not None:
        raise ValidationFailedError.for_field("email", "The email has already been taken.")

    user = User(
        name=user_data.name,
        email=user_data.email.lower(),
        hashed_password=hash_password(user_data.password),
    )
    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info("User registered", extra={"user_id": user.id})
    return user


def authenticate_user(session: Session, email: str, password: str) -> User:
    """Unknown email and wrong password fail the same way."""
    user = get_user_by_email(session, email)
    if user is None or not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError()
    return user


def create_auth_data(user: User) -> AuthData:
    token, expires_at = generate_jwt(user.id)
    return AuthData(user=UserResponse.model_validate(user), token=token, expires_at=expires_at)
