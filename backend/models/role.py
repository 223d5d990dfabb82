"""Role model definitions."""

from sqlalchemy import Column, Integer, String

from backend.database import Base


class Role(Base):
    """Static reference data: ADMIN or CUSTOMER."""
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
