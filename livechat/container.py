from __future__ import annotations

from dataclasses import dataclass
from os import getenv

from livechat.database import Database
from livechat.services.auth_service import AuthService
from livechat.services.broadcaster import BroadcastChannel
from livechat.services.message_service import MessageService

DEFAULT_DATABASE_URL = "sqlite:///./livechat.db"


@dataclass
class ServiceContainer:
    database: Database
    broadcaster: BroadcastChannel
    auth_service: AuthService
    message_service: MessageService
    session_cookie_name: str
    cookie_secure: bool

    async def shutdown(self) -> None:
        await self.broadcaster.close()
        self.auth_service.clear_sessions()
        self.database.dispose()


def build_container() -> ServiceContainer:
    database = Database(
        getenv("LIVECHAT_DATABASE_URL", DEFAULT_DATABASE_URL),
        echo=_parse_bool(getenv("LIVECHAT_DATABASE_ECHO"), default=False),
    )
    broadcaster = BroadcastChannel()
    return ServiceContainer(
        database=database,
        broadcaster=broadcaster,
        auth_service=AuthService(
            database=database,
            session_ttl_sec=_parse_int(getenv("LIVECHAT_SESSION_TTL_SEC"), default=86400),
        ),
        message_service=MessageService(
            database=database,
            broadcaster=broadcaster,
            max_length=_parse_int(getenv("LIVECHAT_MESSAGE_MAX_LENGTH"), default=4000),
        ),
        session_cookie_name=getenv("LIVECHAT_SESSION_COOKIE", "livechat_session").strip()
        or "livechat_session",
        cookie_secure=_parse_bool(getenv("LIVECHAT_COOKIE_SECURE"), default=False),
    )


def _parse_int(value: str | None, *, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_bool(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default
