from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from livechat.client import ChatView, HttpChatTransport, ViewState
from livechat.container import build_container
from livechat.main import app

PASSWORD = "Aa1!aaaa"


@pytest.fixture()
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    monkeypatch.setenv("LIVECHAT_DATABASE_URL", f"sqlite:///{tmp_path / 'chat.db'}")
    app.state.container = build_container()
    with TestClient(app) as test_client:
        test_client.post(
            "/auth/register",
            data={
                "name": "alice",
                "email": "alice@example.com",
                "password": PASSWORD,
                "password_confirm": PASSWORD,
            },
        )
        test_client.post(
            "/auth/login",
            data={"name": "alice", "password": PASSWORD},
            follow_redirects=False,
        )
        yield test_client


def test_post_fans_out_to_every_connection_including_sender(client: TestClient) -> None:
    with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
        response = client.post("/message", data={"message": "hello all"})
        chat_id = response.json()["chatID"]

        frames = [first.receive_json(), second.receive_json()]

    expected = {"event": "message", "data": {"chatID": chat_id, "message": "hello all", "name": "alice"}}
    assert frames == [expected, expected]


def test_delete_fans_out_message_deleted(client: TestClient) -> None:
    chat_id = client.post("/message", data={"message": "short lived"}).json()["chatID"]

    with client.websocket_connect("/ws") as socket:
        client.post("/message/delete", data={"messageID": str(chat_id)})
        frame = socket.receive_json()

    assert frame == {"event": "messageDeleted", "data": chat_id}


def test_late_joiner_gets_no_backlog(client: TestClient) -> None:
    client.post("/message", data={"message": "before connect"})

    with client.websocket_connect("/ws") as socket:
        client.post("/message", data={"message": "after connect"})
        frame = socket.receive_json()

    assert frame["data"]["message"] == "after connect"


def test_connection_is_registered_without_login(client: TestClient) -> None:
    broadcaster = app.state.container.broadcaster
    client.get("/logout")

    with client.websocket_connect("/ws") as socket:
        client.post("/message/delete", data={"messageID": "42"})
        frame = socket.receive_json()
        assert broadcaster.connection_count == 1

    assert frame == {"event": "messageDeleted", "data": 42}


def test_inbound_frames_are_ignored_including_binary(client: TestClient) -> None:
    with client.websocket_connect("/ws") as socket:
        socket.send_text("hello server")
        socket.send_bytes(b"\x00\x01")
        client.post("/message", data={"message": "still live"})
        frame = socket.receive_json()

    assert frame["data"]["message"] == "still live"


def test_chat_view_goes_live_and_follows_push_events(client: TestClient) -> None:
    client.post("/message", data={"message": "history"})
    view = ChatView(transport=HttpChatTransport(client=client), viewer_name="alice")

    assert view.state is ViewState.LOADING
    with client.websocket_connect("/ws") as socket:
        view.load()
        view.draft = "<i>pushed</i>"
        view.submit()
        frame = socket.receive_json()
        view.handle_event(frame["event"], frame["data"])

    assert view.state is ViewState.LIVE
    assert view.draft == ""
    assert [item.text for item in view.messages] == ["history", "<i>pushed</i>"]
    html = view.render()
    assert "&lt;i&gt;pushed&lt;/i&gt;" in html
    assert "<i>" not in html
    assert html.count("delete-button") == 2
