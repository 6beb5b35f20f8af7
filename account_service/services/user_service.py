"""User directory: registration, profile updates, listing and deletion."""

import logging
from typing import Any, Iterable

from fastapi import BackgroundTasks
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, defer

from account_service.auth.passwords import hash_password
from account_service.core.errors import ConflictError, NotFoundError
from account_service.core.validators import require_email_or_phone
from account_service.models.user import User, UserRole
from account_service.schemas.responses import Pagination
from account_service.schemas.users import PUBLIC_FIELDS, UserOut, UserRegister, UserUpdate
from account_service.storage.files import schedule_file_deletion

logger = logging.getLogger(__name__)

SEARCHABLE_FIELDS = ("name", "email", "phone")
FILTERABLE_FIELDS = ("role",)


def to_user_out(user: User, omit: Iterable[str] | None = None) -> UserOut:
    omitted = set(omit or ())
    return UserOut(**{field: getattr(user, field) for field in PUBLIC_FIELDS if field not in omitted})


def _omit_options(omit: Iterable[str] | None) -> list:
    # id is needed to identify the row, so it is never deferred
    return [defer(getattr(User, field)) for field in (omit or ()) if field in PUBLIC_FIELDS and field != "id"]


def _conflict_message(email: str | None, phone: str | None) -> str:
    identifiers = " ".join(name for name, value in (("email", email), ("phone", phone)) if value)
    return f"User already exists with this {identifiers}".strip()


def _find_by_identifier(db: Session, email: str | None, phone: str | None) -> User | None:
    conditions = []
    if email:
        conditions.append(User.email == email)
    if phone:
        conditions.append(User.phone == phone)
    if not conditions:
        return None
    return db.query(User).filter(or_(*conditions)).first()


def _commit_or_conflict(db: Session, email: str | None, phone: str | None) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(_conflict_message(email, phone)) from exc


def create_user(db: Session, registration: UserRegister) -> UserOut:
    require_email_or_phone(registration.email, registration.phone)

    if _find_by_identifier(db, registration.email, registration.phone) is not None:
        raise ConflictError(_conflict_message(registration.email, registration.phone))

    user = User(
        name=registration.name,
        email=registration.email,
        phone=registration.phone,
        password=hash_password(registration.password),
        role=UserRole.UNVERIFIED.value,
    )
    db.add(user)
    _commit_or_conflict(db, registration.email, registration.phone)
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return to_user_out(user)


def update_user(db: Session, user: User, changes: UserUpdate, background_tasks: BackgroundTasks) -> UserOut:
    data = changes.model_dump(exclude_unset=True)
    require_email_or_phone(data.get("email", user.email), data.get("phone", user.phone))

    if "avatar" in data and data["avatar"] != user.avatar:
        schedule_file_deletion(background_tasks, user.avatar)

    for field, value in data.items():
        setattr(user, field, value)

    _commit_or_conflict(db, data.get("email"), data.get("phone"))
    db.refresh(user)
    return to_user_out(user)


def list_users(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    filters: dict[str, Any] | None = None,
    omit: Iterable[str] | None = None,
) -> tuple[list[UserOut], Pagination]:
    query = db.query(User)

    for field, value in (filters or {}).items():
        if field in FILTERABLE_FIELDS and value is not None:
            query = query.filter(getattr(User, field) == value)

    if search:
        # autoescape keeps % and _ in the search text literal
        matches = (getattr(User, field).icontains(search, autoescape=True) for field in SEARCHABLE_FIELDS)
        query = query.filter(or_(*matches))

    total = query.count()
    users = (
        query.options(*_omit_options(omit))
        .order_by(User.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return [to_user_out(user, omit) for user in users], Pagination.build(page, limit, total)


def get_user_by_id(db: Session, user_id: int, omit: Iterable[str] | None = None) -> UserOut | None:
    user = db.query(User).options(*_omit_options(omit)).filter(User.id == user_id).first()
    if user is None:
        return None
    return to_user_out(user, omit)


def count_users_by_role(db: Session) -> dict[str, int]:
    rows = db.query(User.role, func.count(User.id)).group_by(User.role).all()
    return {role: count for role, count in rows}


def delete_user(db: Session, user_id: int, background_tasks: BackgroundTasks) -> UserOut:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User doesn't exist")

    schedule_file_deletion(background_tasks, user.avatar)
    deleted = to_user_out(user)
    db.delete(user)
    db.commit()
    logger.info("Deleted user %s", user_id)
    return deleted
