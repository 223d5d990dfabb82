import os

from dotenv import load_dotenv

load_dotenv()


def _get_optional_int(value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    return int(value)


APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./car_rental.db")

CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
# Tokens carry no exp claim unless this is set.
JWT_EXPIRES_MINUTES = _get_optional_int(os.getenv("JWT_EXPIRES_MINUTES"))

PASSWORD_HASH_ROUNDS = int(os.getenv("PASSWORD_HASH_ROUNDS", "29000"))

ADMIN_ROLE_NAME = "ADMIN"
CUSTOMER_ROLE_NAME = "CUSTOMER"
DEFAULT_ROLE_NAME = os.getenv("DEFAULT_ROLE_NAME", CUSTOMER_ROLE_NAME)

DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
