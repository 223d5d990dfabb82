"""Car model definitions."""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String, func

from backend.database import Base


class CarSize(str, enum.Enum):
    SMALL = "SMALL"
    MEDIUM = "MEDIUM"
    LARGE = "LARGE"


class Car(Base):
    """Represents a car in the rental inventory."""
    __tablename__ = "cars"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    price = Column(Integer, nullable=False)
    size = Column(Enum(CarSize, name="car_size", native_enum=False), nullable=False, index=True)
    image = Column(String, nullable=True)
    is_currently_rented = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
