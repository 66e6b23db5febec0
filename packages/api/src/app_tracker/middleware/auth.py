# This project was developed with assistance from AI tools.
"""
Keycloak bearer-token authentication.

Tokens are verified against the realm's published signing keys. The caller's
profile row is then loaded, or created on first sight, and becomes the source
of their role: an admin changing someone's role takes effect on the next
request, without waiting for a new token.

AUTH_DISABLED=true skips token checks and treats every caller as a dev admin,
whose profile row is provisioned like any other first login.
"""

import logging
import time
from typing import Annotated

import httpx
import jwt
from db import get_db
from db.enums import UserRole
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import build_data_scope
from ..core.config import settings
from ..schemas.auth import DataScope, TokenPayload, UserContext
from ..services.profile import ensure_profile

logger = logging.getLogger(__name__)

ALL_ROLES = (UserRole.APPLICANT, UserRole.REVIEWER, UserRole.ADMIN)

_DISABLED_USER = UserContext(
    user_id="dev-user",
    role=UserRole.ADMIN,
    email="dev@app-tracker.local",
    name="Dev User",
    data_scope=DataScope(full_pipeline=True),
)


class AuthenticationError(Exception):
    """A presented token could not be turned into a caller.

    ``unavailable`` distinguishes an unreachable identity provider from a
    token that is simply bad.
    """

    def __init__(self, message: str, *, unavailable: bool = False):
        super().__init__(message)
        self.message = message
        self.unavailable = unavailable


# ---------------------------------------------------------------------------
# Realm signing keys
# ---------------------------------------------------------------------------


def _realm_url() -> str:
    return f"{settings.KEYCLOAK_URL}/realms/{settings.KEYCLOAK_REALM}"


class _SigningKeys:
    """Realm JWKS held for JWKS_CACHE_TTL seconds.

    An unknown ``kid`` forces one refetch, which covers key rotation.
    """

    def __init__(self):
        self._keys: jwt.PyJWKSet | None = None
        self._loaded_at = 0.0

    def _load(self) -> jwt.PyJWKSet:
        url = f"{_realm_url()}/protocol/openid-connect/certs"
        try:
            response = httpx.get(url, timeout=5)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Could not load signing keys from %s: %s", url, exc)
            raise AuthenticationError(
                "Authentication service unavailable", unavailable=True
            ) from exc
        self._keys = jwt.PyJWKSet.from_dict(response.json())
        self._loaded_at = time.time()
        return self._keys

    def _current(self) -> jwt.PyJWKSet:
        if self._keys is None or time.time() - self._loaded_at > settings.JWKS_CACHE_TTL:
            return self._load()
        return self._keys

    def find(self, kid: str | None) -> jwt.PyJWK:
        for fetch in (self._current, self._load):
            keyset = fetch()
            match = next((k for k in keyset.keys if k.key_id == kid), None)
            if match is not None:
                return match
        raise jwt.InvalidTokenError(f"No signing key with kid={kid}")


_signing_keys = _SigningKeys()


def _decode_token(token: str) -> TokenPayload:
    """Verify signature, expiry and issuer, then parse the claims."""
    kid = jwt.get_unverified_header(token).get("kid")
    claims = jwt.decode(
        token,
        _signing_keys.find(kid).key,
        algorithms=["RS256"],
        issuer=_realm_url(),
        options={"verify_aud": False},
    )
    return TokenPayload(**claims)


# ---------------------------------------------------------------------------
# Caller resolution
# ---------------------------------------------------------------------------


def _token_role(token_payload: TokenPayload) -> UserRole | None:
    """First application role among the realm roles, or None.

    Keycloak's built-in roles are ignored. The result only seeds a new profile.
    """
    known = {role.value for role in UserRole}
    ours = [r for r in token_payload.realm_access.get("roles", []) if r in known]
    if not ours:
        return None
    if len(ours) > 1:
        logger.warning(
            "Token for %s carries roles %s; seeding with %s", token_payload.sub, ours, ours[0]
        )
    return UserRole(ours[0])


async def resolve_user(session: AsyncSession, payload: TokenPayload) -> UserContext:
    """Build the caller's context from their profile row."""
    profile = await ensure_profile(
        session,
        user_id=payload.sub,
        email=payload.email,
        full_name=payload.name or payload.preferred_username,
        role=_token_role(payload),
    )
    return UserContext(
        user_id=profile.user_id,
        role=profile.role,
        email=profile.email,
        name=profile.full_name,
        data_scope=build_data_scope(profile.role, profile.user_id),
    )


async def _provision_dev_user(session: AsyncSession) -> None:
    """Give the dev admin a profile row so its writes satisfy the profile FKs."""
    await ensure_profile(
        session,
        user_id=_DISABLED_USER.user_id,
        email=_DISABLED_USER.email,
        full_name=_DISABLED_USER.name,
        role=UserRole.ADMIN,
    )


async def authenticate_token(session: AsyncSession, token: str | None) -> UserContext:
    """Resolve a raw bearer token to a caller.

    Shared by the HTTP dependency and the notification WebSocket. Raises
    AuthenticationError when the token is absent, invalid or expired, or
    when the signing keys cannot be fetched.
    """
    if settings.AUTH_DISABLED:
        await _provision_dev_user(session)
        return _DISABLED_USER
    if not token:
        raise AuthenticationError("Missing authentication token")
    try:
        payload = _decode_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Invalid token") from exc
    return await resolve_user(session, payload)


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------


def _bearer(request: Request) -> str | None:
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme == "Bearer" and credentials:
        return credentials
    return None


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_db),
) -> UserContext:
    """Authenticate the request's bearer token."""
    try:
        return await authenticate_token(session, _bearer(request))
    except AuthenticationError as exc:
        if exc.unavailable:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message
            ) from exc
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


CurrentUser = Annotated[UserContext, Depends(get_current_user)]


def require_roles(*allowed_roles: UserRole):
    """Route dependency that rejects callers outside ``allowed_roles`` with 403."""

    async def _check(user: CurrentUser) -> UserContext:
        if user.role in allowed_roles:
            return user
        logger.warning(
            "Denied %s (%s): route allows %s",
            user.user_id,
            user.role.value,
            ", ".join(r.value for r in allowed_roles),
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions"
        )

    return _check
