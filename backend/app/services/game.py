"""Per-device game state and screen routing.

A :class:`GameSession` owns everything the player sees during a session:
current screen, profile, score, discovered stickers and the drop list. Every
change is mirrored to the device's offline cache and, best-effort, to the
remote store.
"""
from __future__ import annotations

import logging
import random
import time
from collections import OrderedDict
from enum import Enum
from typing import Any

import httpx
from fastapi import HTTPException, status
from pydantic import ValidationError

from ..core.config import settings
from ..db.storage import DeviceStorage
from ..db.supabase import SupabaseClient, SupabaseError
from ..schemas import (
    AuthSession,
    Drop,
    FindResult,
    GameState,
    Leaderboard,
    LeaderboardEntry,
    MapMarker,
    MapView,
    ProfileView,
    Sticker,
    StickerProgress,
    UserProfile,
)
from . import auth as auth_service
from . import stickers as sticker_catalog
from . import sync
from . import validation
from .avatars import AvatarUpload, describe_avatar, emoji_avatar, is_offered_emoji, upload_avatar
from .cache import OfflineCache
from .scoring import calc_score

logger = logging.getLogger(__name__)

OWN_DROP_COLOR = "#C6FF00"

# Drops that exist before any sync; the map starts empty
SEED_DROPS: list[Drop] = []


class Screen(str, Enum):
    AUTH = "auth"
    DASH = "dash"
    FIND = "find"
    CAM = "cam"
    VALIDATING = "validating"
    FAILED = "failed"
    MAP = "map"
    PROFILE = "profile"


BACK_TARGETS: dict[Screen, Screen] = {
    Screen.FIND: Screen.DASH,
    Screen.CAM: Screen.FIND,
    Screen.FAILED: Screen.FIND,
    Screen.MAP: Screen.DASH,
    Screen.PROFILE: Screen.DASH,
}


class InvalidTransition(HTTPException):
    def __init__(self, action: str, screen: Screen):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot {action} from the {screen.value} screen.",
        )


class ProfileSetupError(HTTPException):
    def __init__(self, detail: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(status_code=status_code, detail=detail)


def _now_ms() -> int:
    return int(time.time() * 1000)


class GameSession:
    def __init__(
        self,
        storage: DeviceStorage,
        client: SupabaseClient | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.storage = storage
        self.client = client
        self.cache = OfflineCache(storage)
        self.sessions = auth_service.SessionStore(storage)
        self._rng = rng or random.Random()
        self.restored = False
        self._reset()

    def _reset(self) -> None:
        self.screen = Screen.AUTH
        self.user: UserProfile | None = None
        self.total_score = 0
        self.finds = 0
        self.discovered: list[str] = []
        self.drops: list[Drop] = list(SEED_DROPS)
        self.selected: str | None = None
        self.result: FindResult | None = None
        self.fail_reason = ""
        self.auth_session: AuthSession | None = None
        self.pending_session: AuthSession | None = None

    # ----- state -----

    @property
    def access_token(self) -> str | None:
        session = self.pending_session or self.auth_session
        return session.access_token if session else None

    @property
    def selected_sticker(self) -> Sticker | None:
        return sticker_catalog.find_sticker(self.selected)

    @property
    def own_drops(self) -> list[Drop]:
        return [d for d in self.drops if d.is_own]

    def state(self) -> GameState:
        return GameState(
            screen=self.screen.value,
            user=self._current_profile(),
            total_score=self.total_score,
            finds=self.finds,
            discovered=list(self.discovered),
            drops=list(self.drops),
            selected=self.selected,
            result=self.result,
            fail_reason=self.fail_reason,
            pending_setup=self.pending_session is not None,
        )

    def _current_profile(self) -> UserProfile | None:
        if self.user is None:
            return None
        return self.user.model_copy(
            update={"total_score": self.total_score, "finds": self.finds, "discovered": list(self.discovered)}
        )

    def _apply_profile(self, profile: dict[str, Any], drops: list[Drop]) -> None:
        self.user = UserProfile(
            user_id=str(profile.get("user_id") or profile.get("userId")),
            username=profile.get("username") or "",
            avatar_id=profile.get("avatar_id") or "",
            total_score=int(profile.get("total_score") or 0),
            finds=int(profile.get("finds") or 0),
            discovered=list(dict.fromkeys(profile.get("discovered") or [])),
        )
        self.total_score = self.user.total_score
        self.finds = self.user.finds
        self.discovered = list(self.user.discovered)
        self.drops = [*SEED_DROPS, *[d.model_copy(update={"is_own": True}) for d in drops]]

    def _require(self, action: str, *screens: Screen) -> None:
        if self.screen not in screens:
            raise InvalidTransition(action, self.screen)

    # ----- persistence -----

    def _cache_payload(self) -> dict[str, Any]:
        profile = self._current_profile()
        payload: dict[str, Any] = profile.model_dump(mode="json") if profile else {}
        if profile:
            payload["userId"] = profile.user_id
        payload["ownDrops"] = [d.model_dump(mode="json") for d in self.own_drops]
        return payload

    async def _persist(self) -> None:
        if self.user is None:
            return
        await self.cache.write(self._cache_payload())
        await sync.save_profile(
            self.client,
            self.user.user_id,
            {"total_score": self.total_score, "discovered": self.discovered, "finds": self.finds},
            self.access_token,
        )

    @staticmethod
    def _cached_drops(raw: Any) -> list[Drop]:
        drops: list[Drop] = []
        for item in raw if isinstance(raw, list) else []:
            try:
                drops.append(Drop.model_validate({**item, "is_own": True}))
            except (TypeError, ValidationError):
                logger.warning("Skipping unreadable cached drop: %r", item)
        return drops

    # ----- sign-in -----

    async def restore(self) -> GameState:
        """Load the device's cached profile, then refresh it from the store."""
        if self.auth_session is None:
            self.auth_session = await self.sessions.get()
        cache = await self.cache.read()
        self.restored = True
        if cache.get("userId") and cache.get("username"):
            self._apply_profile(cache, self._cached_drops(cache.get("ownDrops")))
            self.screen = Screen.DASH
            await self.sync_from_store()
        return self.state()

    async def sync_from_store(self) -> None:
        if self.user is None or settings.is_demo:
            return
        user_id = self.user.user_id
        row = await sync.fetch_profile(self.client, user_id, self.access_token)
        if not row:
            return
        drops = await sync.load_drops(self.client, user_id, self.access_token)
        merged = {**self.user.model_dump(), **row, "user_id": user_id}
        self._apply_profile(merged, drops)
        await self.cache.write(self._cache_payload())

    async def request_magic_link(self, email: str) -> str:
        self._require("request a sign-in link", Screen.AUTH)
        return await auth_service.send_magic_link(self.client, email)

    async def handle_redirect(self, fragment: str) -> GameState:
        """Complete sign-in from the ``#access_token=...`` redirect fragment."""
        if "access_token" not in fragment:
            return await self.restore()
        session = auth_service.session_from_fragment(fragment)
        if session is None:
            return await self.restore()
        await self.sessions.save(session)
        self.restored = True
        return await self.load_user_after_auth(session)

    async def exchange_token(self, token: str) -> GameState:
        if self.client is None or settings.is_demo:
            raise ProfileSetupError("Sign-in links are disabled in demo mode.")
        session = await auth_service.exchange_token(self.client, token)
        await self.sessions.save(session)
        self.restored = True
        return await self.load_user_after_auth(session)

    async def load_user_after_auth(self, session: AuthSession) -> GameState:
        self.auth_session = session
        user_id = session.user.id
        if not user_id:
            logger.warning("Access token carried no user id, staying on sign-in")
            self.screen = Screen.AUTH
            return self.state()

        row = await sync.fetch_profile(self.client, user_id, session.access_token)
        if row and row.get("username"):
            drops = await sync.load_drops(self.client, user_id, session.access_token)
            profile = {**row, "user_id": user_id}
            self._apply_profile(profile, drops)
            self.pending_session = None
            await self.cache.write(self._cache_payload())
            self.screen = Screen.DASH
        else:
            self.pending_session = session
            self.screen = Screen.AUTH
        return self.state()

    async def complete_profile(
        self,
        username: str,
        emoji: str | None = None,
        upload: AvatarUpload | None = None,
    ) -> GameState:
        """First-time setup: username (set once) and exactly one avatar."""
        self._require("set up a profile", Screen.AUTH)
        if self.user is not None:
            raise ProfileSetupError("Username is already set.", status.HTTP_409_CONFLICT)
        if not auth_service.is_valid_username(username):
            raise ProfileSetupError(f"Username needs at least {auth_service.MIN_USERNAME_LENGTH} characters.")
        if (emoji is None) == (upload is None):
            raise ProfileSetupError("Choose exactly one avatar.")
        if emoji is not None and not is_offered_emoji(emoji):
            raise ProfileSetupError("Unknown avatar.")

        user_id = self._setup_user_id()
        if upload is not None:
            avatar_id = await self._store_avatar(user_id, upload)
        else:
            avatar_id = emoji_avatar(emoji or "")

        name = auth_service.normalize_username(username)
        fields = {"username": name, "avatar_id": avatar_id, "total_score": 0, "finds": 0, "discovered": []}
        await sync.save_profile(self.client, user_id, fields, self.access_token)
        await self.cache.write({"userId": user_id, "user_id": user_id, **fields, "ownDrops": []})

        self._apply_profile({"user_id": user_id, **fields}, [])
        if self.pending_session is not None:
            self.auth_session = self.pending_session
        self.pending_session = None
        self.screen = Screen.DASH
        return self.state()

    def _setup_user_id(self) -> str:
        session = self.pending_session or self.auth_session
        if session and session.user.id:
            return session.user.id
        if settings.is_demo:
            return f"demo_{_now_ms()}"
        raise ProfileSetupError("Sign in before setting up a profile.", status.HTTP_401_UNAUTHORIZED)

    async def _store_avatar(self, user_id: str, upload: AvatarUpload) -> str:
        if settings.is_demo or self.client is None:
            return upload_avatar(upload.as_data_url())
        try:
            url = await self.client.upload_avatar(
                user_id, upload.filename, upload.content, upload.content_type, self.access_token
            )
        except (SupabaseError, httpx.HTTPError) as exc:
            logger.warning("Avatar upload failed, storing inline copy: %s", exc)
            return upload_avatar(upload.as_data_url())
        return upload_avatar(url)

    async def sign_out(self) -> GameState:
        await self.sessions.clear()
        await self.cache.clear()
        self._reset()
        return self.state()

    # ----- hunt -----

    def hunt(self) -> GameState:
        self._require("start a hunt", Screen.DASH)
        self.selected = None
        self.screen = Screen.FIND
        return self.state()

    def select(self, sticker_id: str) -> GameState:
        self._require("select a sticker", Screen.FIND)
        if sticker_catalog.find_sticker(sticker_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown sticker.")
        self.selected = sticker_id
        self.screen = Screen.CAM
        return self.state()

    def back(self) -> GameState:
        target = BACK_TARGETS.get(self.screen)
        if target is None:
            raise InvalidTransition("go back", self.screen)
        self.screen = target
        return self.state()

    def retry(self) -> GameState:
        self._require("retry", Screen.FAILED)
        self.screen = Screen.CAM
        return self.state()

    def open_map(self) -> GameState:
        self._require("open the map", Screen.DASH)
        self.screen = Screen.MAP
        return self.state()

    def open_profile(self) -> GameState:
        self._require("open the profile", Screen.DASH)
        self.screen = Screen.PROFILE
        return self.state()

    def dismiss_result(self) -> GameState:
        self.result = None
        return self.state()

    def is_pioneer(self, sticker_id: str) -> bool:
        return not any(d.sticker_id == sticker_id and not d.is_own for d in self.drops)

    def _new_drop(self, sticker_id: str, pts: int, pioneer: bool) -> Drop:
        jitter = settings.drop_jitter
        return Drop(
            id=f"own-{_now_ms()}",
            sticker_id=sticker_id,
            lat=settings.default_lat + (self._rng.random() - 0.5) * jitter,
            lng=settings.default_lng + (self._rng.random() - 0.5) * jitter,
            owner=self.user.username if self.user else "you",
            city=settings.default_city,
            time="just now",
            pts=pts,
            pioneer=pioneer,
            is_own=True,
        )

    async def capture(self, photo_base64: str | None) -> GameState:
        """Validate a captured photo of the selected sticker and score it."""
        self._require("capture", Screen.CAM)
        sticker = self.selected_sticker
        user = self.user
        if sticker is None or user is None:
            raise InvalidTransition("capture", self.screen)

        self.screen = Screen.VALIDATING
        try:
            verdict = await validation.validate_sticker(photo_base64, sticker)
        except (HTTPException, ValueError) as exc:
            logger.warning("Validation of %s failed: %s", sticker.id, exc)
            verdict = None

        # The session may have been signed out or moved on while the verdict was pending
        if self.user is not user or self.screen is not Screen.VALIDATING:
            logger.info("Discarding verdict for %s, session changed during validation", sticker.id)
            return self.state()
        if verdict is None:
            self.fail_reason = validation.SERVER_ERROR_REASON
            self.screen = Screen.FAILED
            return self.state()

        if not verdict.valid:
            self.fail_reason = verdict.reason
            self.screen = Screen.FAILED
            return self.state()

        is_first = self.finds == 0
        is_pioneer = self.is_pioneer(sticker.id)
        score = calc_score(sticker, is_first, is_pioneer)
        drop = self._new_drop(sticker.id, score.total, is_pioneer)

        self.total_score += score.total
        self.finds += 1
        if sticker.id not in self.discovered:
            self.discovered.append(sticker.id)
        self.drops.insert(0, drop)

        await sync.save_drop(self.client, user.user_id, drop, self.access_token)
        await self._persist()

        self.result = FindResult(
            sticker_id=sticker.id,
            total=score.total,
            breakdown=score.breakdown,
            is_pioneer=is_pioneer,
            confidence=verdict.confidence,
        )
        self.fail_reason = ""
        self.screen = Screen.DASH
        return self.state()

    # ----- views -----

    def _require_user(self) -> UserProfile:
        if self.user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No profile on this device.")
        return self.user

    async def leaderboard(self) -> Leaderboard:
        user = self._require_user()
        entries = [
            LeaderboardEntry(
                tag=user.username,
                pts=self.total_score,
                avatar_id=user.avatar_id,
                avatar=describe_avatar(user.avatar_id),
                own=True,
            )
        ]
        rows = await sync.fetch_leaderboard(self.client)
        if rows:
            entries = [
                LeaderboardEntry(
                    tag=row.get("username") or "",
                    pts=int(row.get("total_score") or 0),
                    avatar_id=row.get("avatar_id"),
                    avatar=describe_avatar(row.get("avatar_id")),
                    own=row.get("username") == user.username,
                )
                for row in rows
            ]
        rank = next((i + 1 for i, entry in enumerate(entries) if entry.own), 0)
        return Leaderboard(entries=entries, rank=rank)

    def map_view(self) -> MapView:
        catalog = sticker_catalog.get_catalog()
        fallback = catalog[0] if catalog else sticker_catalog.PLACEHOLDER_STICKER
        markers = []
        for drop in self.drops:
            sticker = sticker_catalog.find_sticker(drop.sticker_id) or fallback
            markers.append(
                MapMarker(
                    drop=drop,
                    sticker=sticker,
                    color=OWN_DROP_COLOR if drop.is_own else sticker.color,
                    rarity_style=sticker_catalog.rarity_style(sticker.rarity),
                )
            )
        own = next((d for d in self.drops if d.is_own), None)
        return MapView(total=len(self.drops), markers=markers, focus=(own.lat, own.lng) if own else None)

    def profile_view(self) -> ProfileView:
        user = self._require_user()
        catalog = sticker_catalog.get_catalog()
        return ProfileView(
            username=user.username,
            avatar_id=user.avatar_id,
            avatar=describe_avatar(user.avatar_id),
            total_score=self.total_score,
            found=len(self.discovered),
            catalog_size=len(catalog),
            own_drops=len(self.own_drops),
            stickers=[
                StickerProgress(id=s.id, name=s.name, rarity=s.rarity.value, found=s.id in self.discovered)
                for s in catalog
            ],
        )


class GameSessionRegistry:
    """In-process map of device id to its live :class:`GameSession`.

    Least recently used sessions are evicted past ``settings.max_device_sessions``;
    an evicted device is rebuilt from its cache by ``restore()`` on the next request.
    """

    sessions: OrderedDict[str, GameSession] = OrderedDict()

    @classmethod
    def get(cls, storage: DeviceStorage, client: SupabaseClient | None) -> GameSession:
        session = cls.sessions.get(storage.device_id)
        if session is None:
            session = GameSession(storage, client)
            cls.sessions[storage.device_id] = session
        cls.sessions.move_to_end(storage.device_id)
        while len(cls.sessions) > max(settings.max_device_sessions, 1):
            cls.sessions.popitem(last=False)
        return session

    @classmethod
    def discard(cls, device_id: str) -> None:
        cls.sessions.pop(device_id, None)

    @classmethod
    def clear(cls) -> None:
        cls.sessions.clear()
