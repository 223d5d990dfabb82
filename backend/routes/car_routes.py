import logging
import math
from datetime import date, datetime, time, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import field_validator
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_admin, require_token
from backend.core import config
from backend.database import get_db
from backend.errors import CarAlreadyRentedError, DatabaseUnavailableError, RecordNotFoundError
from backend.models.car import Car, CarSize
from backend.models.user import User
from backend.models.user_car import UserCar
from backend.schemas import CamelModel

logger = logging.getLogger(__name__)

router = APIRouter(tags=['cars'])

RENT_DEFAULT_DAYS = 1


def parse_car_size(value):
    if isinstance(value, CarSize):
        return value
    if not isinstance(value, str):
        raise ValueError('Size must be one of SMALL, MEDIUM, LARGE.')

    normalized = value.strip().upper()
    if normalized not in CarSize.__members__:
        raise ValueError('Size must be one of SMALL, MEDIUM, LARGE.')
    return CarSize(normalized)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class CreateCarRequest(CamelModel):
    name: str
    price: int
    size: CarSize
    image: str | None = None

    @field_validator('name', mode='before')
    @classmethod
    def validate_name(cls, value):
        if not isinstance(value, str) or not value.strip():
            raise ValueError('Name is required.')
        return value.strip()

    @field_validator('price', mode='before')
    @classmethod
    def validate_price(cls, value):
        if isinstance(value, bool):
            raise ValueError('Price must be a number.')
        return value

    @field_validator('price')
    @classmethod
    def validate_price_range(cls, value: int) -> int:
        if value < 0:
            raise ValueError('Price must not be negative.')
        return value

    @field_validator('size', mode='before')
    @classmethod
    def validate_size(cls, value):
        return parse_car_size(value)


class UpdateCarRequest(CreateCarRequest):
    is_currently_rented: bool | None = None


class CarResponse(CamelModel):
    id: int
    name: str
    price: int
    size: CarSize
    image: str | None = None
    is_currently_rented: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Pagination(CamelModel):
    page: int
    page_count: int
    page_size: int
    count: int


class CarListMeta(CamelModel):
    pagination: Pagination


class CarListResponse(CamelModel):
    cars: list[CarResponse]
    meta: CarListMeta


class RentCarRequest(CamelModel):
    rent_started_at: datetime
    rent_ended_at: datetime | None = None

    @field_validator('rent_started_at', 'rent_ended_at')
    @classmethod
    def normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return to_naive_utc(value)


class ReservationResponse(CamelModel):
    id: int
    user_id: int
    car_id: int
    rent_started_at: datetime
    rent_ended_at: datetime
    created_at: datetime | None = None
    updated_at: datetime | None = None


def serialize_car(car: Car) -> dict:
    return CarResponse.model_validate(car).model_dump(mode='json', by_alias=True)


def build_pagination(page: int, page_size: int, count: int) -> Pagination:
    return Pagination(
        page=page,
        page_count=math.ceil(count / page_size),
        page_size=page_size,
        count=count,
    )


def query_cars(
    db: Session,
    size: CarSize | None = None,
    available_at: date | None = None,
    page: int = 1,
    page_size: int = config.DEFAULT_PAGE_SIZE,
) -> tuple[list[Car], int]:
    query = db.query(Car)

    if size is not None:
        query = query.filter(Car.size == size)

    if available_at is not None:
        day_start = datetime.combine(available_at, time.min)
        day_end = day_start + timedelta(days=1)
        booked_car_ids = select(UserCar.car_id).where(
            UserCar.rent_started_at < day_end,
            UserCar.rent_ended_at >= day_start,
        )
        query = query.filter(Car.id.not_in(booked_car_ids))

    count = query.count()
    cars = query.order_by(Car.id.asc()).offset((page - 1) * page_size).limit(page_size).all()

    return cars, count


def find_contained_reservation(
    db: Session,
    car_id: int,
    rent_started_at: datetime,
    rent_ended_at: datetime,
) -> UserCar | None:
    # Only reservations lying entirely inside the requested window count as a conflict.
    return db.query(UserCar).filter(
        UserCar.car_id == car_id,
        UserCar.rent_started_at >= rent_started_at,
        UserCar.rent_ended_at <= rent_ended_at,
    ).first()


def request_rental(
    db: Session,
    car_id: int,
    requester_id: int,
    rent_started_at: datetime,
    rent_ended_at: datetime | None = None,
) -> UserCar:
    if rent_ended_at is None:
        rent_ended_at = rent_started_at + timedelta(days=RENT_DEFAULT_DAYS)

    car = db.get(Car, car_id)
    if car is None:
        raise RecordNotFoundError('Car')

    requester = db.get(User, requester_id) if requester_id is not None else None
    if requester is None:
        raise RecordNotFoundError('User')

    # TODO: check and insert are not atomic; two concurrent requests for the same window can both pass.
    existing = find_contained_reservation(db, car.id, rent_started_at, rent_ended_at)
    if existing is not None:
        logger.info('Car %s already rented within %s..%s', car.id, rent_started_at, rent_ended_at)
        raise CarAlreadyRentedError(serialize_car(car))

    reservation = UserCar(
        user_id=requester_id,
        car_id=car.id,
        rent_started_at=rent_started_at,
        rent_ended_at=rent_ended_at,
    )
    db.add(reservation)
    db.commit()
    db.refresh(reservation)

    return reservation


@router.get('', response_model=CarListResponse)
def list_cars(
    size: str | None = Query(default=None),
    available_at: date | None = Query(default=None, alias='availableAt'),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=config.DEFAULT_PAGE_SIZE, ge=1, alias='pageSize'),
    db: Session = Depends(get_db),
):
    car_size = None
    if size:
        try:
            car_size = parse_car_size(size)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(exc),
            ) from exc

    try:
        cars, count = query_cars(db, size=car_size, available_at=available_at, page=page, page_size=page_size)
    except SQLAlchemyError as exc:
        logger.exception('Listing cars failed')
        raise DatabaseUnavailableError() from exc

    return CarListResponse(
        cars=[CarResponse.model_validate(car) for car in cars],
        meta=CarListMeta(pagination=build_pagination(page, page_size, count)),
    )


@router.get('/{car_id}', response_model=CarResponse)
def get_car(car_id: int, db: Session = Depends(get_db)):
    try:
        car = db.get(Car, car_id)
    except SQLAlchemyError as exc:
        logger.exception('Car lookup failed')
        raise DatabaseUnavailableError() from exc

    if car is None:
        raise RecordNotFoundError('Car')

    return car


@router.post('', response_model=CarResponse, status_code=status.HTTP_201_CREATED)
def create_car(
    data: CreateCarRequest,
    token_payload: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        car = Car(
            name=data.name,
            price=data.price,
            size=data.size,
            image=data.image,
            is_currently_rented=False,
        )
        db.add(car)
        db.commit()
        db.refresh(car)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Creating car failed')
        raise DatabaseUnavailableError() from exc

    logger.info('Car %s created by user %s', car.id, token_payload.get('id'))
    return car


@router.put('/{car_id}', response_model=CarResponse)
def update_car(
    car_id: int,
    data: UpdateCarRequest,
    token_payload: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        car = db.get(Car, car_id)
        if car is None:
            raise RecordNotFoundError('Car', status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)

        car.name = data.name
        car.price = data.price
        car.size = data.size
        car.image = data.image
        if data.is_currently_rented is not None:
            car.is_currently_rented = data.is_currently_rented

        db.commit()
        db.refresh(car)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Updating car %s failed', car_id)
        raise DatabaseUnavailableError() from exc

    logger.info('Car %s updated by user %s', car.id, token_payload.get('id'))
    return car


@router.delete('/{car_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_car(
    car_id: int,
    token_payload: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        deleted = db.query(Car).filter(Car.id == car_id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Deleting car %s failed', car_id)
        raise DatabaseUnavailableError() from exc

    if deleted:
        logger.info('Car %s deleted by user %s', car_id, token_payload.get('id'))


@router.post('/{car_id}/rent', response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def rent_car(
    car_id: int,
    data: RentCarRequest,
    token_payload: dict = Depends(require_token),
    db: Session = Depends(get_db),
):
    try:
        return request_rental(
            db,
            car_id=car_id,
            requester_id=token_payload.get('id'),
            rent_started_at=data.rent_started_at,
            rent_ended_at=data.rent_ended_at,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Renting car %s failed', car_id)
        raise DatabaseUnavailableError() from exc
