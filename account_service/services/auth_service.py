"""Authentication flows: login, password change/reset and account verification.

Token issuance is left to the routes; every function here either returns the
user record or raises one of the errors from ``account_service.core.errors``.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from fastapi import BackgroundTasks
from sqlalchemy import or_
from sqlalchemy.orm import Session

from account_service.auth.passwords import hash_password, verify_password
from account_service.core import config
from account_service.core.errors import NotFoundError, UnauthorizedError
from account_service.core.validators import require_email_or_phone
from account_service.mail.notifications import send_email
from account_service.mail.templates import render_reset_password_otp
from account_service.models.user import User, UserRole
from account_service.schemas.users import UserOut
from account_service.services.user_service import to_user_out

logger = logging.getLogger(__name__)

RESET_EMAIL_SUBJECT = "Reset your password"
INVALID_OTP_MESSAGE = "Invalid or expired OTP"


def login(db: Session, password: str, email: str | None = None, phone: str | None = None) -> UserOut:
    require_email_or_phone(email, phone)

    conditions = []
    if email:
        conditions.append(User.email == email)
    if phone:
        conditions.append(User.phone == phone)
    user = db.query(User).filter(or_(*conditions)).first()

    if user is None:
        raise NotFoundError("User doesn't exist")

    if not verify_password(password, user.password):
        logger.info("Rejected login for user %s: incorrect password", user.id)
        raise UnauthorizedError("Incorrect password")

    return to_user_out(user)


def change_password(db: Session, user: User, old_password: str, new_password: str) -> UserOut:
    if not verify_password(old_password, user.password):
        raise UnauthorizedError("Incorrect password")

    user.password = hash_password(new_password)
    db.commit()
    db.refresh(user)
    return to_user_out(user)


def verify_account(db: Session, user: User) -> UserOut:
    if user.role == UserRole.UNVERIFIED.value:
        user.role = UserRole.USER.value
        db.commit()
        db.refresh(user)
    return to_user_out(user)


def generate_otp(length: int | None = None) -> str:
    length = length or config.OTP_LENGTH
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _clear_otp(user: User) -> None:
    user.otp = None
    user.otp_expires_at = None
    user.otp_attempts = 0


def request_password_reset(db: Session, email: str, background_tasks: BackgroundTasks) -> None:
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        logger.info("Password reset requested for unknown email")
        return

    otp = generate_otp()
    user.otp = otp
    user.otp_expires_at = datetime.now(timezone.utc) + timedelta(minutes=config.OTP_EXPIRES_MINUTES)
    user.otp_attempts = 0
    db.commit()

    html = render_reset_password_otp(user_name=user.name or user.email, otp=otp)
    background_tasks.add_task(send_email, user.email, RESET_EMAIL_SUBJECT, html)


def verify_reset_otp(db: Session, email: str, otp: str, now: datetime | None = None) -> User:
    # unknown emails get the same answer as wrong codes
    user = db.query(User).filter(User.email == email).first()
    if user is None or user.otp is None or user.otp_expires_at is None:
        raise UnauthorizedError(INVALID_OTP_MESSAGE)

    now = now or datetime.now(timezone.utc)
    if _as_utc(user.otp_expires_at) <= now:
        _clear_otp(user)
        db.commit()
        raise UnauthorizedError(INVALID_OTP_MESSAGE)

    if not secrets.compare_digest(user.otp.encode(), otp.encode()):
        user.otp_attempts = (user.otp_attempts or 0) + 1
        if user.otp_attempts >= config.OTP_MAX_ATTEMPTS:
            logger.warning("OTP for user %s discarded after %s wrong attempts", user.id, user.otp_attempts)
            _clear_otp(user)
        db.commit()
        raise UnauthorizedError(INVALID_OTP_MESSAGE)

    _clear_otp(user)
    db.commit()
    db.refresh(user)
    return user


def reset_password(db: Session, user: User, new_password: str) -> UserOut:
    user.password = hash_password(new_password)
    db.commit()
    db.refresh(user)
    return to_user_out(user)
