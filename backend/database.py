import logging
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config

logger = logging.getLogger(__name__)

_connect_args = {'check_same_thread': False} if config.DATABASE_URL.startswith('sqlite') else {}

engine = create_engine(config.DATABASE_URL, connect_args=_connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_reservation_schema_checked = False
_roles_seeded = False

REFERENCE_ROLES = (config.CUSTOMER_ROLE_NAME, config.ADMIN_ROLE_NAME)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_reservation_schema(bind=None) -> None:
    global _reservation_schema_checked

    if _reservation_schema_checked:
        return

    bind = bind or engine

    with _schema_lock:
        if _reservation_schema_checked:
            return

        inspector = inspect(bind)

        if 'user_cars' not in inspector.get_table_names():
            _reservation_schema_checked = True
            return

        with bind.begin() as connection:
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_user_cars_car_rent_range '
                    'ON user_cars(car_id, rent_started_at, rent_ended_at)'
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_user_cars_user ON user_cars(user_id)')
            )

        _reservation_schema_checked = True


def ensure_roles(session_factory=None) -> None:
    global _roles_seeded

    if _roles_seeded:
        return

    from backend.models.role import Role

    session_factory = session_factory or SessionLocal

    with _schema_lock:
        if _roles_seeded:
            return

        db = session_factory()
        try:
            existing = {name for (name,) in db.query(Role.name).all()}
            missing = [name for name in REFERENCE_ROLES if name not in existing]
            for name in missing:
                db.add(Role(name=name))
            if missing:
                db.commit()
                logger.info('Seeded roles: %s', ', '.join(missing))
        finally:
            db.close()

        _roles_seeded = True
