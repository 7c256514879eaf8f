"""Bearer token authentication against Supabase Auth.

Callers (the dashboard) send the Supabase access token of the signed-in user
as ``Authorization: Bearer <token>``. The token is resolved into a user by
the Supabase auth API; the user id then keys rate limiting, quotas and all
row ownership.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, Request

from bizplan.adapters.supabase import SupabaseClient
from bizplan.core.errors import AuthenticationAppError
from bizplan.core.logging import hash_identifier

logger = logging.getLogger(__name__)

_BEARER_RE = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)


@dataclass(frozen=True)
class AuthenticatedUser:
    """The caller, as resolved from their access token.

    Attributes:
        id: Stable Supabase user id.
        email: Account email, when the provider returns one.
        access_token: The caller's token, forwarded to PostgREST so row level
            security applies.
    """

    id: str
    email: str | None
    access_token: str


def parse_bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an Authorization header value.

    Examples:
        >>> parse_bearer_token("Bearer abc.def")
        'abc.def'
        >>> parse_bearer_token("bearer   abc")
        'abc'
        >>> parse_bearer_token("Basic abc") is None
        True
        >>> parse_bearer_token(None) is None
        True
    """
    if not authorization:
        return None

    match = _BEARER_RE.match(authorization.strip())
    if not match:
        return None
    token = match.group(1).strip()
    return token or None


def get_supabase(request: Request) -> SupabaseClient:
    """FastAPI dependency returning the app-wide Supabase client."""
    return request.app.state.supabase


async def get_current_user(
    supabase: Annotated[SupabaseClient, Depends(get_supabase)],
    authorization: Annotated[str | None, Header()] = None,
) -> AuthenticatedUser:
    """FastAPI dependency resolving the bearer token into a user.

    Usage:
        @router.post("/protected")
        async def protected(user: AuthenticatedUser = Depends(get_current_user)):
            ...

    Raises:
        AuthenticationAppError: 401 when the header is missing/malformed or
            Supabase rejects the token.
    """
    token = parse_bearer_token(authorization)
    if not token:
        logger.warning(
            "auth.missing_token",
            extra={"authorization_present": authorization is not None},
        )
        raise AuthenticationAppError(code="missing_token", message="Unauthorized")

    try:
        supabase_user = await supabase.get_user(token)
    except AuthenticationAppError:
        logger.warning("auth.rejected", extra={"token_hash": hash_identifier(token)})
        raise

    logger.info(
        "auth.success",
        extra={"user_id_hash": hash_identifier(supabase_user.id)},
    )
    return AuthenticatedUser(
        id=supabase_user.id,
        email=supabase_user.email,
        access_token=token,
    )


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
