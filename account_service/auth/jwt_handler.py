import enum
from datetime import datetime, timedelta, timezone
from functools import lru_cache

import jwt

from account_service.core import config
from account_service.core.config import PurposeSettings, TokenSettings


class TokenPurpose(str, enum.Enum):
    ACCESS = "access_token"
    REFRESH = "refresh_token"
    RESET = "reset_token"


class InvalidTokenError(Exception):
    pass


class TokenIssuer:
    """Signs and verifies purpose-bound JWTs for a user id."""

    def __init__(self, settings: TokenSettings) -> None:
        self._settings = settings

    def _purpose_settings(self, purpose: TokenPurpose) -> PurposeSettings:
        return {
            TokenPurpose.ACCESS: self._settings.access,
            TokenPurpose.REFRESH: self._settings.refresh,
            TokenPurpose.RESET: self._settings.reset,
        }[purpose]

    def encode(self, subject_id: int | str, purpose: TokenPurpose) -> str:
        purpose_settings = self._purpose_settings(purpose)
        issued_at = datetime.now(timezone.utc)
        payload = {
            "sub": str(subject_id),
            "type": purpose.value,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=purpose_settings.expires_minutes),
        }
        return jwt.encode(payload, purpose_settings.secret_key, algorithm=self._settings.algorithm)

    def issue(self, subject_id: int | str, *purposes: TokenPurpose) -> dict[str, str]:
        """Return one token per requested purpose, keyed by the purpose name.

        e.g. issue(user.id, TokenPurpose.ACCESS, TokenPurpose.REFRESH)
        returns {"access_token": ..., "refresh_token": ...}
        """
        return {TokenPurpose(purpose).value: self.encode(subject_id, TokenPurpose(purpose)) for purpose in purposes}

    def decode(self, token: str, purpose: TokenPurpose) -> str:
        purpose_settings = self._purpose_settings(purpose)
        try:
            payload = jwt.decode(
                token,
                purpose_settings.secret_key,
                algorithms=[self._settings.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError(str(exc)) from exc

        if payload.get("type") != purpose.value:
            raise InvalidTokenError(f"Expected a {purpose.value}")
        return payload["sub"]


@lru_cache
def get_token_issuer() -> TokenIssuer:
    return TokenIssuer(config.load_token_settings())
