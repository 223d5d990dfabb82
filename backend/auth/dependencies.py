import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.auth import jwt_handler
from backend.core import config
from backend.errors import InsufficientAccessError, JsonWebTokenError

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def authorize(required_role: str | None = None):
    """Build a route dependency admitting valid tokens with the given role.

    With no role, any valid token is admitted. The decoded payload is
    attached to ``request.state.user`` and returned to the handler.
    """

    def dependency(
        request: Request,
        credentials: HTTPAuthorizationCredentials | None = Depends(security),
    ) -> dict:
        token = credentials.credentials if credentials is not None else None
        try:
            payload = jwt_handler.decode_access_token(token)
        except JsonWebTokenError as exc:
            logger.info("Rejected token on %s: %s", request.url.path, exc.message)
            raise

        if required_role is not None:
            role = payload.get("role")
            role_name = role.get("name") if isinstance(role, dict) else None
            if role_name != required_role:
                logger.info(
                    "Denied %s to role %s (requires %s)", request.url.path, role_name, required_role
                )
                raise InsufficientAccessError(required_role)

        request.state.user = payload
        return payload

    return dependency


require_token = authorize()
require_admin = authorize(config.ADMIN_ROLE_NAME)
