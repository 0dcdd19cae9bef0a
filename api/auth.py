"""
Request authentication for the Relocation API.

The middleware puts an AuthUser on ``request.state.user``. In ``bypass``
mode every request runs as the development admin; in ``production`` mode
the bearer token must be a PocketBase user token that the PocketBase
auth-refresh endpoint accepts. Camp managers carry ``role = "admin"`` on
their users record.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any

import httpx
from fastapi import HTTPException, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)

PUBLIC_PATHS = frozenset({"/health", "/api/health"})
AUTH_REFRESH_PATH = "/api/collections/users/auth-refresh"
ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class AuthUser:
    user_id: str
    email: str
    display_name: str
    is_admin: bool

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["id"] = data.pop("user_id")
        return data

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> AuthUser:
        email = record.get("email", "")
        return cls(
            user_id=record.get("id", ""),
            email=email,
            display_name=record.get("full_name") or record.get("name") or email,
            is_admin=record.get("role") == ADMIN_ROLE,
        )


DEV_ADMIN = AuthUser(user_id="dev_admin", email="dev_admin@example.com", display_name="Dev Admin", is_admin=True)


def extract_bearer_token(authorization_header: str | None) -> str | None:
    scheme, _, token = (authorization_header or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip() or " " in token.strip():
        return None
    return token.strip()


class PocketBaseTokenValidator:
    """Asks PocketBase whether a user token is still good, caching answers briefly."""

    def __init__(self, pocketbase_url: str, cache_ttl: int = 60):
        self.refresh_url = pocketbase_url.rstrip("/") + AUTH_REFRESH_PATH
        self._cache_ttl = cache_ttl
        self._accepted: dict[str, tuple[AuthUser, float]] = {}

    def validate_token(self, token: str) -> AuthUser | None:
        token_hash = hashlib.sha256(token.encode()).hexdigest()
        hit = self._accepted.get(token_hash)
        if hit is not None:
            if time.monotonic() < hit[1]:
                return hit[0]
            del self._accepted[token_hash]

        try:
            response = httpx.post(self.refresh_url, headers={"Authorization": f"Bearer {token}"}, timeout=5.0)
        except httpx.HTTPError as e:
            logger.warning(f"PocketBase token check failed: {type(e).__name__}: {e}")
            return None

        if response.status_code != 200:
            logger.debug(f"PocketBase rejected token with status {response.status_code}")
            return None

        user = AuthUser.from_record(response.json().get("record") or {})
        self._accepted[token_hash] = (user, time.monotonic() + self._cache_ttl)
        logger.info(f"Authenticated {user.email} (admin={user.is_admin})")
        return user


class AuthMiddleware(BaseHTTPMiddleware):
    """Resolves the caller or answers 401; health checks and preflights pass through."""

    def __init__(self, app: Any, auth_mode: str, pocketbase_url: str):
        super().__init__(app)
        self.auth_mode = auth_mode.lower()
        if self.auth_mode not in ("bypass", "production"):
            raise ValueError(f"Invalid AUTH_MODE: {auth_mode}. Must be bypass or production")
        self.validator = PocketBaseTokenValidator(pocketbase_url) if self.auth_mode == "production" else None
        logger.info(f"Authentication middleware running in {self.auth_mode} mode")

    async def _resolve(self, request: Request) -> AuthUser | None:
        if self.validator is None:
            return DEV_ADMIN
        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            return None
        return await asyncio.to_thread(self.validator.validate_token, token)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in PUBLIC_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        user = await self._resolve(request)
        if user is None:
            logger.warning(f"Unauthenticated {request.method} {request.url.path}")
            # Raising here would surface as a 500 from BaseHTTPMiddleware
            return JSONResponse(status_code=401, content={"detail": "Authentication required"})

        request.state.user = user
        return await call_next(request)


def get_current_user(request: Request) -> AuthUser:
    user = getattr(request.state, "user", None)
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
