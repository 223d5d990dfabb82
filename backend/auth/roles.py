from fastapi import Depends
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.models.role import Role


class RoleLookup:
    """Role reference data read through the request's session."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_name(self, name: str) -> Role | None:
        return self.db.query(Role).filter(Role.name == name).first()

    def find_by_id(self, role_id: int) -> Role | None:
        return self.db.get(Role, role_id)


def get_role_lookup(db: Session = Depends(get_db)) -> RoleLookup:
    return RoleLookup(db)
