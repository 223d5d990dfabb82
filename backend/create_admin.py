"""Create an ADMIN account so car inventory can be managed.

Usage:
    python -m backend.create_admin --name Admin --email admin@example.com --password secret
"""
import argparse
import sys

from backend.auth import authentication, jwt_handler
from backend.auth.roles import RoleLookup
from backend.core import config
from backend.database import Base, SessionLocal, engine, ensure_roles
from backend.errors import ApiError
from backend.models import car, role, user, user_car  # noqa: F401


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine)
    ensure_roles()

    db = SessionLocal()
    try:
        token = authentication.register_user(
            db,
            RoleLookup(db),
            name=args.name,
            email=args.email,
            password=args.password,
            role_name=config.ADMIN_ROLE_NAME,
        )
    except ApiError as exc:
        print(f"{exc.name}: {exc.message}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        return 1
    finally:
        db.close()

    payload = jwt_handler.decode_access_token(token)
    print(f"Created admin user {payload['id']} <{payload['email']}>")
    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
