from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from account_service.auth.jwt_handler import InvalidTokenError, TokenIssuer, TokenPurpose, get_token_issuer
from account_service.database import get_db
from account_service.models.user import User, UserRole

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_token(
    credentials: HTTPAuthorizationCredentials | None,
    purpose: TokenPurpose,
    db: Session,
    issuer: TokenIssuer,
) -> User:
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        subject = issuer.decode(credentials.credentials, purpose)
    except InvalidTokenError as exc:
        raise _unauthorized("Invalid token") from exc

    try:
        user_id = int(subject)
    except ValueError as exc:
        raise _unauthorized("Invalid token subject") from exc

    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> User:
    return _user_from_token(credentials, TokenPurpose.ACCESS, db, issuer)


def get_refresh_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> User:
    return _user_from_token(credentials, TokenPurpose.REFRESH, db, issuer)


def get_reset_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> User:
    return _user_from_token(credentials, TokenPurpose.RESET, db, issuer)


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Administration rights required")
    return current_user
