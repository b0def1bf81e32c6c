from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from livechat.crud import accounts as accounts_crud
from livechat.database import Database
from livechat.errors import AuthError, ConflictError, DatastoreError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PASSWORD_PATTERN = re.compile(r"^(?=.*\d)(?=.*[a-z])(?=.*[A-Z])(?=.*[!@#$%^&*]).{8,}$")

_pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


@dataclass(slots=True)
class SessionRecord:
    token: str
    account_id: int
    name: str
    created_at: datetime
    expires_at: datetime


@dataclass(slots=True)
class Profile:
    account_id: int
    name: str
    email: str


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_PATTERN.fullmatch(email or ""))


def is_strong_password(password: str) -> bool:
    return bool(_PASSWORD_PATTERN.fullmatch(password or ""))


def hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return _pwd_context.verify(password, password_hash)


class AuthService:
    """Registration, password checks, and the in-process session table.

    Sessions live only in this process and are keyed by an opaque random token
    handed to the browser as a cookie. Account rows live in the datastore.
    """

    def __init__(self, *, database: Database, session_ttl_sec: int = 86400) -> None:
        self._database = database
        self._session_ttl_sec = max(session_ttl_sec, 60)
        self._sessions: dict[str, SessionRecord] = {}

    async def register(
        self,
        *,
        name: str,
        email: str,
        password: str,
        confirm_password: str,
    ) -> str:
        name = (name or "").strip()
        email = (email or "").strip()
        if not name or not email or not password or not confirm_password:
            raise ValidationError("Please fill in all fields.")
        if password != confirm_password:
            raise ValidationError("Passwords do not match.")
        if not is_strong_password(password):
            raise ValidationError(
                "Password must be at least 8 characters and contain a digit, "
                "a lowercase letter, an uppercase letter and a special character (!@#$%^&*)."
            )
        if not is_valid_email(email):
            raise ValidationError("Invalid email address.")

        password_hash = await run_in_threadpool(hash_password, password)
        account_id = await run_in_threadpool(self._insert_account, name, email, password_hash)
        logger.info("account_registered account_id=%s", account_id)
        return "Account registered."

    async def login(self, *, name: str, password: str) -> SessionRecord:
        name = (name or "").strip()
        row = await run_in_threadpool(self._load_credentials, name)
        if row is None:
            raise NotFoundError("User does not exist.")
        account_id, account_name, password_hash = row
        matched = await run_in_threadpool(verify_password, password or "", password_hash)
        if not matched:
            logger.info("login_rejected account_id=%s reason=bad_password", account_id)
            raise AuthError("Wrong password.")

        now = datetime.now(UTC)
        session = SessionRecord(
            token=secrets.token_urlsafe(32),
            account_id=account_id,
            name=account_name,
            created_at=now,
            expires_at=now + timedelta(seconds=self._session_ttl_sec),
        )
        self._sessions[session.token] = session
        self._prune_expired_sessions(now=now)
        logger.info("login_ok account_id=%s", account_id)
        return session

    def logout(self, *, token: str | None) -> None:
        normalized = (token or "").strip()
        if normalized:
            self._sessions.pop(normalized, None)

    def get_session(self, *, token: str | None) -> SessionRecord | None:
        normalized = (token or "").strip()
        if not normalized:
            return None
        session = self._sessions.get(normalized)
        if session is None:
            return None
        if session.expires_at < datetime.now(UTC):
            self._sessions.pop(normalized, None)
            return None
        return session

    def clear_sessions(self) -> None:
        self._sessions.clear()

    @property
    def session_ttl_sec(self) -> int:
        return self._session_ttl_sec

    async def get_profile(self, *, session: SessionRecord | None) -> Profile:
        if session is None:
            raise AuthError("Login required.")
        profile = await run_in_threadpool(self._load_profile, session.account_id)
        if profile is None:
            raise NotFoundError("Account no longer exists.")
        return profile

    async def update_profile(
        self,
        *,
        session: SessionRecord | None,
        name: str,
        email: str,
    ) -> Profile:
        if session is None:
            raise AuthError("Login required.")
        name = (name or "").strip()
        email = (email or "").strip()
        if not is_valid_email(email):
            raise ValidationError("Invalid email address.")
        if not name:
            raise ValidationError("Name cannot be empty.")

        profile = await run_in_threadpool(self._update_account, session.account_id, name, email)
        if profile is None:
            raise NotFoundError("Account no longer exists.")
        session.name = profile.name
        logger.info("profile_updated account_id=%s", profile.account_id)
        return profile

    def _insert_account(self, name: str, email: str, password_hash: str) -> int:
        try:
            with self._database.session() as db:
                if accounts_crud.name_or_email_taken(db, name, email):
                    raise ConflictError("Name or email already exists.")
                return accounts_crud.create_account(db, name, email, password_hash).id
        except IntegrityError as exc:
            raise ConflictError("Name or email already exists.") from exc
        except SQLAlchemyError as exc:
            logger.exception("register_failed reason=datastore")
            raise DatastoreError() from exc

    def _load_credentials(self, name: str) -> tuple[int, str, str] | None:
        try:
            with self._database.session() as db:
                account = accounts_crud.get_account_by_name(db, name)
                if account is None:
                    return None
                return account.id, account.name, account.password_hash
        except SQLAlchemyError as exc:
            logger.exception("login_failed reason=datastore")
            raise DatastoreError() from exc

    def _load_profile(self, account_id: int) -> Profile | None:
        try:
            with self._database.session() as db:
                account = accounts_crud.get_account(db, account_id)
                if account is None:
                    return None
                return Profile(account_id=account.id, name=account.name, email=account.email)
        except SQLAlchemyError as exc:
            logger.exception("profile_load_failed account_id=%s", account_id)
            raise DatastoreError() from exc

    def _update_account(self, account_id: int, name: str, email: str) -> Profile | None:
        try:
            with self._database.session() as db:
                if accounts_crud.name_or_email_taken(db, name, email, exclude_id=account_id):
                    raise ConflictError("Name or email already exists.")
                account = accounts_crud.update_account(db, account_id, name, email)
                if account is None:
                    return None
                return Profile(account_id=account.id, name=account.name, email=account.email)
        except IntegrityError as exc:
            raise ConflictError("Name or email already exists.") from exc
        except SQLAlchemyError as exc:
            logger.exception("profile_update_failed account_id=%s", account_id)
            raise DatastoreError() from exc

    def _prune_expired_sessions(self, *, now: datetime) -> None:
        expired = [token for token, item in self._sessions.items() if item.expires_at < now]
        for token in expired:
            self._sessions.pop(token, None)
