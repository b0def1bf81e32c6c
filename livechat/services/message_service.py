from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from livechat.crud import accounts as accounts_crud
from livechat.crud import messages as messages_crud
from livechat.database import Database
from livechat.errors import AuthError, DatastoreError, ValidationError
from livechat.services.auth_service import SessionRecord
from livechat.services.broadcaster import BroadcastChannel

logger = logging.getLogger(__name__)

MESSAGE_EVENT = "message"
MESSAGE_DELETED_EVENT = "messageDeleted"
MAX_MESSAGE_ID = 2**63 - 1


@dataclass(slots=True)
class ChatMessage:
    chat_id: int
    account_id: int
    name: str
    text: str

    def to_payload(self) -> dict[str, Any]:
        return {"chatID": self.chat_id, "message": self.text, "name": self.name}


class MessageService:
    def __init__(
        self,
        *,
        database: Database,
        broadcaster: BroadcastChannel,
        max_length: int = 4000,
    ) -> None:
        self._database = database
        self._broadcaster = broadcaster
        self._max_length = max(max_length, 1)

    @property
    def max_length(self) -> int:
        return self._max_length

    async def list_messages(self) -> list[ChatMessage]:
        return await run_in_threadpool(self._load_all)

    async def post_message(self, *, session: SessionRecord | None, text: str) -> ChatMessage:
        if session is None:
            raise AuthError("Login required.")
        normalized = (text or "").strip()
        if not normalized:
            raise ValidationError("Message cannot be empty.")
        if len(normalized) > self._max_length:
            raise ValidationError(f"Message is longer than {self._max_length} characters.")

        message = await run_in_threadpool(self._insert, session.account_id, normalized)
        logger.info(
            "message_posted chat_id=%s account_id=%s length=%s",
            message.chat_id,
            message.account_id,
            len(message.text),
        )
        await self._broadcaster.emit(MESSAGE_EVENT, message.to_payload())
        return message

    async def delete_message(self, *, message_id: Any) -> int:
        """Delete by id. Any caller may delete any message; zero matched rows still succeeds."""
        chat_id = _parse_message_id(message_id)
        deleted = await run_in_threadpool(self._delete, chat_id)
        logger.info("message_deleted chat_id=%s rows=%s", chat_id, deleted)
        await self._broadcaster.emit(MESSAGE_DELETED_EVENT, chat_id)
        return chat_id

    def _load_all(self) -> list[ChatMessage]:
        try:
            with self._database.session() as db:
                rows = messages_crud.list_messages(db)
        except SQLAlchemyError as exc:
            logger.exception("message_list_failed reason=datastore")
            raise DatastoreError() from exc
        return [
            ChatMessage(chat_id=chat_id, account_id=account_id, name=name, text=text)
            for chat_id, account_id, text, name in rows
        ]

    def _insert(self, account_id: int, text: str) -> ChatMessage:
        try:
            with self._database.session() as db:
                account = accounts_crud.get_account(db, account_id)
                if account is None:
                    raise AuthError("Account no longer exists.")
                row = messages_crud.create_message(db, account_id, text)
                return ChatMessage(
                    chat_id=row.id,
                    account_id=account_id,
                    name=account.name,
                    text=row.text,
                )
        except SQLAlchemyError as exc:
            logger.exception("message_post_failed account_id=%s", account_id)
            raise DatastoreError() from exc

    def _delete(self, chat_id: int) -> int:
        try:
            with self._database.session() as db:
                return messages_crud.delete_message(db, chat_id)
        except SQLAlchemyError as exc:
            logger.exception("message_delete_failed chat_id=%s", chat_id)
            raise DatastoreError() from exc


def _parse_message_id(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("Invalid message id.")
    try:
        chat_id = int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise ValidationError("Invalid message id.") from exc
    # Row ids are signed 64-bit integers in the datastore.
    if not 0 < chat_id <= MAX_MESSAGE_ID:
        raise ValidationError("Invalid message id.")
    return chat_id
