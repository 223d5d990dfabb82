from datetime import datetime, timedelta, timezone

import jwt

from backend.core import config
from backend.errors import JsonWebTokenError, TokenExpiredError


def build_token_payload(user, role) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "image": user.image,
        "role": {"id": role.id, "name": role.name},
    }


def create_access_token(payload: dict, expires_minutes: int | None = None) -> str:
    now = datetime.now(timezone.utc)
    claims = {**payload, "iat": now}
    expire_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES
    if expire_minutes:
        claims["exp"] = now + timedelta(minutes=expire_minutes)
    return jwt.encode(claims, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str | None) -> dict:
    """Verify and decode a bearer token.

    Failures raise JsonWebTokenError carrying the messages clients already
    match on: "jwt must be provided", "jwt malformed", "invalid signature"
    and "invalid token". Expired tokens raise TokenExpiredError.
    """
    if not token:
        raise JsonWebTokenError("jwt must be provided")
    if token.count(".") != 2:
        raise JsonWebTokenError("jwt malformed")

    try:
        return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpiredError() from exc
    except jwt.InvalidSignatureError as exc:
        raise JsonWebTokenError("invalid signature") from exc
    except jwt.InvalidTokenError as exc:
        raise JsonWebTokenError("invalid token") from exc
