from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.orm import Session

from account_service.auth.dependencies import get_current_user, get_refresh_user, get_reset_user
from account_service.auth.jwt_handler import TokenIssuer, TokenPurpose, get_token_issuer
from account_service.database import get_db
from account_service.models.user import User
from account_service.schemas.responses import ApiResponse
from account_service.schemas.users import MIN_PASSWORD_LENGTH, UserOut
from account_service.services import auth_service

router = APIRouter(tags=['auth'])


class LoginRequest(BaseModel):
    email: EmailStr | None = None
    phone: str | None = None
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if not isinstance(value, str):
            return value
        return value.strip().lower() or None

    @field_validator('phone')
    @classmethod
    def normalize_phone(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class ResetPasswordRequest(BaseModel):
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    otp: str = Field(min_length=1)


class AuthTokensData(BaseModel):
    access_token: str
    refresh_token: str
    user: UserOut


class AccessTokenData(BaseModel):
    access_token: str


class ResetTokenData(BaseModel):
    reset_token: str


class UserData(BaseModel):
    user: UserOut


@router.post('/login', response_model=ApiResponse[AuthTokensData], response_model_exclude_unset=True)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    user = auth_service.login(db, payload.password, email=payload.email, phone=payload.phone)
    tokens = issuer.issue(user.id, TokenPurpose.ACCESS, TokenPurpose.REFRESH)
    return ApiResponse(
        message='Login successfully!',
        data=AuthTokensData(**tokens, user=user),
    )


@router.post('/refresh-token', response_model=ApiResponse[AccessTokenData], response_model_exclude_unset=True)
def refresh_token(
    current_user: User = Depends(get_refresh_user),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    tokens = issuer.issue(current_user.id, TokenPurpose.ACCESS)
    return ApiResponse(
        message='AccessToken refreshed successfully!',
        data=AccessTokenData(**tokens),
    )


@router.post('/change-password', response_model=ApiResponse[None], response_model_exclude_unset=True)
def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    auth_service.change_password(db, current_user, payload.old_password, payload.new_password)
    return ApiResponse(message='Password changed successfully!')


@router.post('/verify-account', response_model=ApiResponse[UserData], response_model_exclude_unset=True)
def verify_account(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = auth_service.verify_account(db, current_user)
    return ApiResponse(message='Account verified successfully!', data=UserData(user=user))


@router.post('/forgot-password', response_model=ApiResponse[None], response_model_exclude_unset=True)
def forgot_password(
    payload: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    auth_service.request_password_reset(db, payload.email.lower(), background_tasks)
    return ApiResponse(message='If the email is registered, an OTP has been sent to it.')


@router.post('/verify-otp', response_model=ApiResponse[ResetTokenData], response_model_exclude_unset=True)
def verify_otp(
    payload: VerifyOtpRequest,
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    user = auth_service.verify_reset_otp(db, payload.email.lower(), payload.otp.strip())
    tokens = issuer.issue(user.id, TokenPurpose.RESET)
    return ApiResponse(message='OTP verified successfully!', data=ResetTokenData(**tokens))


@router.post('/reset-password', response_model=ApiResponse[AuthTokensData], response_model_exclude_unset=True)
def reset_password(
    payload: ResetPasswordRequest,
    current_user: User = Depends(get_reset_user),
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    user = auth_service.reset_password(db, current_user, payload.password)
    tokens = issuer.issue(user.id, TokenPurpose.ACCESS, TokenPurpose.REFRESH)
    return ApiResponse(
        message='Password reset successfully!',
        data=AuthTokensData(**tokens, user=user),
    )
