"""Signed JWT issuance and validation for access and refresh tokens."""

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Literal, NamedTuple

import jwt
from pydantic import BaseModel, ValidationError

from gatekeeper.core.errors import (
    InvalidTokenTypeError,
    TokenExpiredError,
    TokenInvalidError,
)

if TYPE_CHECKING:
    from gatekeeper.core.config import Settings

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"

TokenType = Literal["access", "refresh"]

_REQUIRED_CLAIMS = ["exp", "iat", "nbf", "iss", "jti", "sub"]


class TokenClaims(BaseModel):
    """Claims embedded in every token this service signs."""

    user_id: int
    username: str
    token_type: TokenType
    jti: str
    iss: str
    iat: int
    nbf: int
    exp: int

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=UTC)


class IssuedToken(NamedTuple):
    token: str
    claims: TokenClaims


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


class TokenService:
    """
    Issues and validates HMAC-signed JWTs.

    Each token kind has its own lifetime in seconds. A lifetime of zero or less
    yields a token that is already expired when validated. Holds only
    configuration, so a single instance serves every request.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_expire_seconds: int = 3600,
        refresh_expire_seconds: int = 604800,
        issuer: str = "gatekeeper",
    ) -> None:
        self._secret = secret
        self.algorithm = algorithm
        self.access_expire_seconds = access_expire_seconds
        self.refresh_expire_seconds = refresh_expire_seconds
        self.issuer = issuer

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TokenService":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            access_expire_seconds=settings.JWT_ACCESS_EXPIRE_SECONDS,
            refresh_expire_seconds=settings.JWT_REFRESH_EXPIRE_SECONDS,
            issuer=settings.JWT_ISSUER,
        )

    def lifetime_for(self, token_type: str) -> int:
        if token_type == TOKEN_TYPE_ACCESS:
            return self.access_expire_seconds
        if token_type == TOKEN_TYPE_REFRESH:
            return self.refresh_expire_seconds
        raise ValueError(f"Unknown token type: {token_type!r}")

    def issue_token(self, user_id: int, username: str, token_type: str) -> IssuedToken:
        """Sign a token of the given kind and return it with its claims."""
        lifetime = self.lifetime_for(token_type)
        now = int(datetime.now(UTC).timestamp())
        claims = TokenClaims(
            user_id=user_id,
            username=username,
            token_type=token_type,
            jti=str(uuid.uuid4()),
            iss=self.issuer,
            iat=now,
            nbf=now,
            exp=now + lifetime,
        )
        payload = claims.model_dump()
        payload["sub"] = str(user_id)
        token = jwt.encode(payload, self._secret, algorithm=self.algorithm)
        return IssuedToken(token=token, claims=claims)

    def generate_token(self, user_id: int, username: str, token_type: str) -> str:
        return self.issue_token(user_id, username, token_type).token

    def generate_token_pair(self, user_id: int, username: str) -> TokenPair:
        """Access token plus refresh token for the same subject."""
        return TokenPair(
            access_token=self.generate_token(user_id, username, TOKEN_TYPE_ACCESS),
            refresh_token=self.generate_token(user_id, username, TOKEN_TYPE_REFRESH),
        )

    def validate_token(self, token: str, expected_type: str | None = None) -> TokenClaims:
        """
        Verify signature, algorithm, issuer and validity window; return the claims.

        Raises TokenExpiredError when past exp, TokenInvalidError for any other
        failure, and InvalidTokenTypeError when expected_type is given and the
        token is of the other kind.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except jwt.PyJWTError as exc:
            raise TokenInvalidError() from exc

        try:
            claims = TokenClaims.model_validate(payload)
        except ValidationError as exc:
            raise TokenInvalidError() from exc
        if payload["sub"] != str(claims.user_id):
            raise TokenInvalidError()

        if expected_type is not None and claims.token_type != expected_type:
            raise InvalidTokenTypeError()
        return claims
