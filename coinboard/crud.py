from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models


def get_users(db: Session) -> list[models.User]:
    """Return all users in insertion order."""
    return list(db.scalars(select(models.User).order_by(models.User.id)).all())


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.get(models.User, user_id)


def create_user(db: Session, name: str, email: str) -> models.User:
    """Insert a user; the store assigns `id` and `createtimestamp`.

    A failed commit is rolled back and surfaces as RuntimeError, keeping
    driver details out of the route layer.
    """
    user = models.User(name=name, email=email)
    db.add(user)
    try:
        db.commit()
        # Pull back createtimestamp, which the store fills in.
        db.refresh(user)
    except SQLAlchemyError as exc:
        db.rollback()
        raise RuntimeError("Database commit failed") from exc

    return user
