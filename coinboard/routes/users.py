import logging
import re
from typing import Any, List

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


_USER_ID_RE = re.compile(r"[+-]?[0-9]+")

# Ids are stored as 64-bit integers at most.
_MIN_USER_ID = -(2**63)
_MAX_USER_ID = 2**63 - 1


def _parse_user_id(raw: str) -> int:
    invalid = HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="invalid id format - must be an integer",
    )
    if not _USER_ID_RE.fullmatch(raw):
        raise invalid
    user_id = int(raw)
    if not _MIN_USER_ID <= user_id <= _MAX_USER_ID:
        raise invalid
    return user_id


@router.get("", response_model=List[schemas.UserOut])
def list_users(db: Session = Depends(get_db)):
    """Return all users; an empty array when there are none."""
    try:
        return crud.get_users(db)
    except SQLAlchemyError:
        logger.exception("Listing users failed")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Users not found")


@router.get(
    "/{user_id}",
    response_model=schemas.UserOut,
    responses={400: {"model": schemas.ErrorResponse}, 404: {"model": schemas.ErrorResponse}},
)
def get_user(user_id: str, db: Session = Depends(get_db)):
    parsed_id = _parse_user_id(user_id)
    not_found = HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"User with Id of {parsed_id} not found in our records!",
    )

    try:
        user = crud.get_user(db, parsed_id)
    except SQLAlchemyError:
        logger.exception("Looking up user %s failed", parsed_id)
        raise not_found

    if user is None:
        raise not_found
    return user


@router.post(
    "",
    response_model=schemas.UserOut,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": schemas.ErrorResponse}, 500: {"model": schemas.ErrorResponse}},
)
def create_user(payload: Any = Body(...), db: Session = Depends(get_db)):
    """Create a user from a `{"name": ..., "email": ...}` body.

    The body is taken as raw JSON so that a missing field, a null and a
    value of the wrong type each get their own 400 message.
    """
    try:
        name, email = schemas.parse_user_create(payload)
    except schemas.FieldError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    try:
        return crud.create_user(db, name, email)
    except RuntimeError:
        logger.exception("Creating user failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="failed to create user",
        )
