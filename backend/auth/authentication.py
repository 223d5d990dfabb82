"""Credential issuing and identity lookups behind the /auth routes."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.auth.passwords import hash_password, verify_password
from backend.auth.roles import RoleLookup
from backend.core import config
from backend.errors import (
    EmailAlreadyTakenError,
    EmailNotRegisteredError,
    RecordNotFoundError,
    WrongPasswordError,
)
from backend.models.role import Role
from backend.models.user import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def issue_access_token(db: Session, email: str, password: str) -> str:
    user = find_user_by_email(db, email)
    if user is None:
        raise EmailNotRegisteredError(normalize_email(email))

    if not verify_password(password, user.encrypted_password):
        raise WrongPasswordError()

    payload = jwt_handler.build_token_payload(user, user.role)
    return jwt_handler.create_access_token(payload)


def register_user(
    db: Session,
    roles: RoleLookup,
    *,
    name: str,
    email: str,
    password: str,
    role_name: str = config.DEFAULT_ROLE_NAME,
    image: str | None = None,
) -> str:
    normalized_email = normalize_email(email)
    if find_user_by_email(db, normalized_email) is not None:
        raise EmailAlreadyTakenError(normalized_email)

    role = roles.find_by_name(role_name)
    if role is None:
        raise RecordNotFoundError("Role")

    user = User(
        name=name,
        email=normalized_email,
        image=image,
        encrypted_password=hash_password(password),
        role_id=role.id,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration of the same email.
        db.rollback()
        raise EmailAlreadyTakenError(normalized_email) from exc
    db.refresh(user)
    logger.info("Registered user %s with role %s", user.id, role.name)

    payload = jwt_handler.build_token_payload(user, role)
    return jwt_handler.create_access_token(payload)


def get_current_user(db: Session, roles: RoleLookup, user_id: int) -> tuple[User, Role]:
    # Re-read from the store so role or profile changes since issuance apply.
    user = db.get(User, user_id) if user_id is not None else None
    if user is None:
        raise RecordNotFoundError("User")

    role = roles.find_by_id(user.role_id)
    if role is None:
        raise RecordNotFoundError("Role")

    return user, role
