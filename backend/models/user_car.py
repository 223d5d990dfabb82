"""Reservation (user/car booking) model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, func

from backend.database import Base


class UserCar(Base):
    """One booking interval of one car by one user."""
    __tablename__ = "user_cars"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    car_id = Column(Integer, ForeignKey("cars.id", ondelete="CASCADE"), nullable=False)
    rent_started_at = Column(DateTime, nullable=False)
    rent_ended_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
