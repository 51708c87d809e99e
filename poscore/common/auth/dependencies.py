"""
Authentication dependencies for the POS Core API.

This module provides FastAPI dependencies that read the bearer access token
from the ``Authorization`` header and turn it into a user id. The token
issuer is taken from ``app.state`` so tests can run the application with
their own secrets.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from poscore.common.auth.exceptions import MissingTokenError
from poscore.common.auth.jwt import TokenIssuer, TokenType
from poscore.common.logger import get_logger

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False, description="Access token from /auth/login")


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


async def get_optional_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> Optional[int]:
    """
    Get the authenticated user id, or None when no bearer token was sent.

    A token that is present but invalid is still rejected.

    Raises:
        InvalidTokenError: If the token is malformed, expired or not an access token
    """
    if credentials is None:
        return None

    claims = issuer.validate(credentials.credentials, TokenType.ACCESS)
    request.state.user_id = claims.user_id
    return claims.user_id


async def get_current_user_id(user_id: Optional[int] = Depends(get_optional_user_id)) -> int:
    """
    Get the authenticated user id from the bearer access token.

    Returns:
        The id in the token's ``sub`` claim

    Raises:
        MissingTokenError: If no bearer token was sent
        InvalidTokenError: If the token is malformed, expired or not an access token
    """
    if user_id is None:
        raise MissingTokenError()
    return user_id
