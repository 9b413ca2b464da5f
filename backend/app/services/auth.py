"""Passwordless email-link sign-in and the per-device session record."""
from __future__ import annotations

import logging
import re
from urllib.parse import parse_qs

import httpx
from fastapi import HTTPException, status
from pydantic import ValidationError

from ..core.config import settings
from ..core.security import decode_token_payload
from ..db.storage import DeviceStorage
from ..db.supabase import SupabaseClient, SupabaseError
from ..schemas import AuthSession, SessionUser

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3
MAX_USERNAME_LENGTH = 20
ACCEPTED_LINK_TYPES = ("magiclink", "signup")
SEND_LINK_FAILED = "Couldn't send link. Check your email."


class SessionStore:
    def __init__(self, storage: DeviceStorage, key: str | None = None) -> None:
        self._storage = storage
        self.key = key or settings.session_key

    async def get(self) -> AuthSession | None:
        raw = await self._storage.get_item(self.key)
        if not raw:
            return None
        try:
            return AuthSession.model_validate_json(raw)
        except ValidationError:
            return None

    async def save(self, session: AuthSession) -> None:
        await self._storage.set_item(self.key, session.model_dump_json())

    async def clear(self) -> None:
        await self._storage.remove_item(self.key)


def normalize_username(raw: str) -> str:
    """Drop all whitespace, lowercase, and cap at MAX_USERNAME_LENGTH."""
    return re.sub(r"\s", "", raw or "").lower()[:MAX_USERNAME_LENGTH]


def is_valid_username(raw: str) -> bool:
    return len(normalize_username(raw)) >= MIN_USERNAME_LENGTH


def parse_fragment(fragment: str) -> dict[str, str]:
    params = parse_qs(fragment.lstrip("#"), keep_blank_values=True)
    return {key: values[0] for key, values in params.items() if values}


def session_from_tokens(access_token: str, refresh_token: str | None = None) -> AuthSession:
    payload = decode_token_payload(access_token)
    return AuthSession(
        access_token=access_token,
        refresh_token=refresh_token,
        user=SessionUser(id=payload.get("sub"), email=payload.get("email")),
    )


def session_from_fragment(fragment: str) -> AuthSession | None:
    """Build a session from a magic-link redirect fragment.

    Returns ``None`` when the fragment carries no access token or is not a
    magic-link/signup redirect (an error redirect, for instance).
    """
    params = parse_fragment(fragment)
    access_token = params.get("access_token")
    if not access_token or params.get("type") not in ACCEPTED_LINK_TYPES:
        return None
    return session_from_tokens(access_token, params.get("refresh_token"))


async def send_magic_link(client: SupabaseClient | None, email: str) -> str:
    """Request a sign-in link; returns the next auth stage."""
    if settings.is_demo or client is None:
        return "username"
    try:
        await client.send_magic_link(email, settings.app_url)
    except (SupabaseError, httpx.HTTPError) as exc:
        logger.warning("Magic link request failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=SEND_LINK_FAILED) from exc
    return "sent"


async def exchange_token(client: SupabaseClient, token: str) -> AuthSession:
    try:
        data = await client.exchange_token(token)
    except (SupabaseError, httpx.HTTPError) as exc:
        logger.warning("Token exchange failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign-in link is invalid or expired.") from exc
    session = session_from_tokens(data["access_token"], data.get("refresh_token"))
    user = data.get("user")
    if isinstance(user, dict):
        session.user = SessionUser(id=user.get("id") or session.user.id, email=user.get("email") or session.user.email)
    return session

