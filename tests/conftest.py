import os

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret')
os.environ.setdefault('PASSWORD_HASH_ROUNDS', '1000')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from backend.auth import jwt_handler  # noqa: E402
from backend.auth.passwords import hash_password  # noqa: E402
from backend.core import config  # noqa: E402
from backend.database import Base, get_db  # noqa: E402
from backend.main import app  # noqa: E402
from backend.models.car import Car, CarSize  # noqa: E402
from backend.models.role import Role  # noqa: E402
from backend.models.user import User  # noqa: E402


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    session.add_all([Role(name=config.CUSTOMER_ROLE_NAME), Role(name=config.ADMIN_ROLE_NAME)])
    session.commit()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(
        email: str = 'budi@gmail.com',
        password: str = '123456',
        role_name: str = config.CUSTOMER_ROLE_NAME,
        name: str = 'Budi',
    ) -> User:
        role = db.query(Role).filter(Role.name == role_name).one()
        user = User(
            name=name,
            email=email,
            encrypted_password=hash_password(password),
            role_id=role.id,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_car(db):
    def _make_car(name: str = 'Avanza', price: int = 100000, size: CarSize = CarSize.SMALL) -> Car:
        car = Car(name=name, price=price, size=size, image=f'{name.lower()}.jpeg', is_currently_rented=False)
        db.add(car)
        db.commit()
        db.refresh(car)
        return car

    return _make_car


@pytest.fixture
def token_for():
    def _token_for(user: User) -> str:
        return jwt_handler.create_access_token(jwt_handler.build_token_payload(user, user.role))

    return _token_for


@pytest.fixture
def client(db, session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
