import asyncio
from typing import Any

import pytest

from livechat.database import Database
from livechat.errors import AuthError, DatastoreError, ValidationError
from livechat.models import Message
from livechat.services.auth_service import AuthService, SessionRecord
from livechat.services.message_service import MessageService

PASSWORD = "Aa1!aaaa"


class _RecordingChannel:
    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    async def emit(self, event: str, payload: Any) -> int:
        self.events.append((event, payload))
        return 1


def _setup() -> tuple[AuthService, MessageService, _RecordingChannel, SessionRecord]:
    database = Database("sqlite://")
    database.create_all()
    channel = _RecordingChannel()
    auth = AuthService(database=database)
    messages = MessageService(database=database, broadcaster=channel, max_length=20)  # type: ignore[arg-type]
    asyncio.run(
        auth.register(name="alice", email="alice@example.com", password=PASSWORD, confirm_password=PASSWORD)
    )
    session = asyncio.run(auth.login(name="alice", password=PASSWORD))
    return auth, messages, channel, session


def test_post_requires_session() -> None:
    _, messages, channel, _ = _setup()

    with pytest.raises(AuthError):
        asyncio.run(messages.post_message(session=None, text="hello"))
    assert channel.events == []


def test_post_persists_then_emits_message_event() -> None:
    _, messages, channel, session = _setup()

    posted = asyncio.run(messages.post_message(session=session, text="  hello  "))
    listed = asyncio.run(messages.list_messages())

    assert posted.text == "hello"
    assert [(item.chat_id, item.name, item.text) for item in listed] == [(posted.chat_id, "alice", "hello")]
    assert channel.events == [("message", {"chatID": posted.chat_id, "message": "hello", "name": "alice"})]


def test_post_rejects_blank_and_oversized_text() -> None:
    _, messages, channel, session = _setup()

    with pytest.raises(ValidationError):
        asyncio.run(messages.post_message(session=session, text="   "))
    with pytest.raises(ValidationError):
        asyncio.run(messages.post_message(session=session, text="x" * 21))
    assert channel.events == []


def test_history_joins_current_author_name() -> None:
    auth, messages, _, session = _setup()
    asyncio.run(messages.post_message(session=session, text="first"))

    asyncio.run(auth.update_profile(session=session, name="alicia", email="alice@example.com"))
    listed = asyncio.run(messages.list_messages())

    assert [item.name for item in listed] == ["alicia"]


def test_delete_emits_exactly_one_event_with_id() -> None:
    _, messages, channel, session = _setup()
    posted = asyncio.run(messages.post_message(session=session, text="gone soon"))
    channel.events.clear()

    deleted = asyncio.run(messages.delete_message(message_id=str(posted.chat_id)))

    assert deleted == posted.chat_id
    assert asyncio.run(messages.list_messages()) == []
    assert channel.events == [("messageDeleted", posted.chat_id)]


def test_delete_missing_id_is_success() -> None:
    _, messages, channel, _ = _setup()

    assert asyncio.run(messages.delete_message(message_id=12345)) == 12345
    assert channel.events == [("messageDeleted", 12345)]


@pytest.mark.parametrize("bad_id", ["abc", "", None, True, 0, -1, 2**63, "99999999999999999999"])
def test_delete_rejects_invalid_id(bad_id: object) -> None:
    _, messages, channel, _ = _setup()

    with pytest.raises(ValidationError):
        asyncio.run(messages.delete_message(message_id=bad_id))
    assert channel.events == []


def test_datastore_failure_on_post_is_not_emitted() -> None:
    _, messages, channel, session = _setup()
    Message.__table__.drop(messages._database.engine)

    with pytest.raises(DatastoreError):
        asyncio.run(messages.post_message(session=session, text="lost"))
    assert channel.events == []


def test_datastore_failure_on_delete_is_not_emitted() -> None:
    _, messages, channel, _ = _setup()
    Message.__table__.drop(messages._database.engine)

    with pytest.raises(DatastoreError):
        asyncio.run(messages.delete_message(message_id=1))
    assert channel.events == []
