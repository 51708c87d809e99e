"""
JWT Token Issuer

This module mints and validates the two token kinds used by the API.
Access tokens are short-lived and stateless; refresh tokens are long-lived
and are additionally tracked by the refresh token registry. Each kind is
signed with its own secret and has its own expiration window, so a token
of one kind can never be accepted as the other.
"""

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

# Using PyJWT for JWT operations
import jwt

from poscore.common.auth.exceptions import ExpiredTokenError, InvalidTokenError


class TokenType(enum.Enum):
    """Types of JWT tokens issued by the API."""

    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class JWTConfig:
    """
    Configuration for JWT tokens.

    Attributes:
        access_secret: Secret used to sign access tokens
        refresh_secret: Secret used to sign refresh tokens
        access_token_expires: Lifetime of an access token
        refresh_token_expires: Lifetime of a refresh token
        algorithm: Signing algorithm shared by both token kinds
    """
    access_secret: str
    refresh_secret: str
    access_token_expires: timedelta
    refresh_token_expires: timedelta
    algorithm: str = "HS256"

    @classmethod
    def from_settings(cls, settings) -> "JWTConfig":
        return cls(
            access_secret=settings.JWT_SECRET,
            refresh_secret=settings.REFRESH_TOKEN_SECRET,
            access_token_expires=settings.access_token_ttl,
            refresh_token_expires=settings.refresh_token_ttl,
            algorithm=settings.JWT_ALGORITHM,
        )

    def secret_for(self, token_type: TokenType) -> str:
        return self.access_secret if token_type is TokenType.ACCESS else self.refresh_secret

    def lifetime_for(self, token_type: TokenType) -> timedelta:
        if token_type is TokenType.ACCESS:
            return self.access_token_expires
        return self.refresh_token_expires


@dataclass(frozen=True)
class TokenPair:
    """An access token and the refresh token minted alongside it."""
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class TokenClaims:
    """Validated identity claims extracted from a token."""
    user_id: int
    token_type: TokenType
    expires_at: datetime
    email: Optional[str] = None
    username: Optional[str] = None


def build_identity_claims(email: Optional[str] = None, username: Optional[str] = None) -> Dict[str, Any]:
    """Claims shared by both tokens of a pair; null identifiers are left out."""
    claims: Dict[str, Any] = {}
    if email:
        claims["email"] = email
    if username:
        claims["username"] = username
    return claims


class TokenIssuer:
    """
    Signs and validates access and refresh tokens.

    Example:
        issuer = TokenIssuer(JWTConfig.from_settings(settings))
        pair = issuer.issue(user.id, user.email, user.username)
        claims = issuer.validate(pair.access_token, TokenType.ACCESS)
    """

    def __init__(self, config: JWTConfig):
        self._config = config

    @property
    def config(self) -> JWTConfig:
        return self._config

    def create_token(
        self,
        subject: int,
        token_type: TokenType,
        additional_claims: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Create a signed token of the given type.

        Args:
            subject: The user id the token is issued to
            token_type: Which secret and lifetime to use
            additional_claims: Extra identity claims (email, username)

        Returns:
            The encoded JWT
        """
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "sub": str(subject),
            "iat": now,
            "exp": now + self._config.lifetime_for(token_type),
            "type": token_type.value,
            "jti": uuid.uuid4().hex,
        }
        if additional_claims:
            payload.update(additional_claims)

        return jwt.encode(payload, self._config.secret_for(token_type), algorithm=self._config.algorithm)

    def issue(self, user_id: int, email: Optional[str] = None, username: Optional[str] = None) -> TokenPair:
        """Mint a fresh access/refresh pair from the same identity claims."""
        claims = build_identity_claims(email, username)
        return TokenPair(
            access_token=self.create_token(user_id, TokenType.ACCESS, claims),
            refresh_token=self.create_token(user_id, TokenType.REFRESH, claims),
        )

    def validate(self, token: str, expected_type: TokenType) -> TokenClaims:
        """
        Verify a token's signature, expiry and type and return its claims.

        Raises:
            ExpiredTokenError: If the token has expired
            InvalidTokenError: If the token is malformed, signed with another
                secret, of another type, or has a non-numeric subject
        """
        try:
            payload = jwt.decode(
                token,
                self._config.secret_for(expected_type),
                algorithms=[self._config.algorithm],
                options={"require": ["exp", "iat", "sub", "type"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError()
        except jwt.PyJWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        if payload.get("type") != expected_type.value:
            raise InvalidTokenError(
                f"Invalid token type: expected {expected_type.value}, got {payload.get('type')}"
            )

        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            raise InvalidTokenError("Token subject is not a user id")

        return TokenClaims(
            user_id=user_id,
            token_type=expected_type,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            email=payload.get("email"),
            username=payload.get("username"),
        )
