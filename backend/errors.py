"""Domain errors surfaced to API clients.

Every error renders as ``{"error": {"name", "message", "details"}}`` and
carries the HTTP status it maps to at the boundary.
"""

from typing import Any


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Any = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {
            'error': {
                'name': self.name,
                'message': self.message,
                'details': self.details,
            }
        }


class JsonWebTokenError(ApiError):
    status_code = 401

    def __init__(self, message: str):
        super().__init__(message)


class TokenExpiredError(JsonWebTokenError):
    def __init__(self):
        super().__init__('jwt expired')


class InsufficientAccessError(ApiError):
    status_code = 401

    def __init__(self, role: str):
        super().__init__(
            'Access forbidden!',
            details={
                'role': role,
                'reason': f'{role} is not allowed to perform this operation.',
            },
        )


class EmailNotRegisteredError(ApiError):
    status_code = 404

    def __init__(self, email: str):
        super().__init__(f'{email} is not registered!', details={'email': email})


class WrongPasswordError(ApiError):
    status_code = 401

    def __init__(self):
        super().__init__('Password is not correct!')


class EmailAlreadyTakenError(ApiError):
    status_code = 422

    def __init__(self, email: str):
        super().__init__(f'{email} is already taken!', details={'email': email})


class RecordNotFoundError(ApiError):
    status_code = 404

    def __init__(self, entity_name: str, status_code: int | None = None):
        super().__init__(f'{entity_name} not found!', status_code=status_code)
        self.entity_name = entity_name


class CarAlreadyRentedError(ApiError):
    status_code = 422

    def __init__(self, car: dict):
        super().__init__(f"{car['name']} is already rented!", details={'car': car})


class DatabaseUnavailableError(ApiError):
    status_code = 503

    def __init__(self):
        super().__init__('Database unavailable. Verify DATABASE_URL and database credentials.')
