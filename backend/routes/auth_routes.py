import logging

from fastapi import APIRouter, Depends, status
from pydantic import field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth import authentication
from backend.auth.dependencies import require_token
from backend.auth.roles import RoleLookup, get_role_lookup
from backend.database import get_db
from backend.errors import DatabaseUnavailableError
from backend.schemas import CamelModel

logger = logging.getLogger(__name__)

router = APIRouter(tags=['auth'])


class LoginRequest(CamelModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return authentication.normalize_email(value)


class RegisterRequest(CamelModel):
    name: str
    email: str
    password: str
    image: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = authentication.normalize_email(value)
        if not normalized or '@' not in normalized:
            raise ValueError('A valid email is required.')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required.')
        return value


class TokenResponse(CamelModel):
    access_token: str


class RoleResponse(CamelModel):
    id: int
    name: str


class UserResponse(CamelModel):
    id: int
    name: str
    email: str
    image: str | None = None
    role_id: int
    role: RoleResponse


@router.post('/login', response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    try:
        access_token = authentication.issue_access_token(db, data.email, data.password)
    except SQLAlchemyError as exc:
        logger.exception('Login lookup failed')
        raise DatabaseUnavailableError() from exc

    return TokenResponse(access_token=access_token)


@router.post('/register', response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    roles: RoleLookup = Depends(get_role_lookup),
):
    try:
        access_token = authentication.register_user(
            db,
            roles,
            name=data.name,
            email=data.email,
            password=data.password,
            image=data.image,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Registration failed')
        raise DatabaseUnavailableError() from exc

    return TokenResponse(access_token=access_token)


@router.get('/whoami', response_model=UserResponse)
def whoami(
    token_payload: dict = Depends(require_token),
    db: Session = Depends(get_db),
    roles: RoleLookup = Depends(get_role_lookup),
):
    try:
        user, role = authentication.get_current_user(db, roles, token_payload.get('id'))
    except SQLAlchemyError as exc:
        logger.exception('Current user lookup failed')
        raise DatabaseUnavailableError() from exc

    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        image=user.image,
        role_id=user.role_id,
        role=RoleResponse(id=role.id, name=role.name),
    )
