from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from livechat.client.transport import ChatTransport

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
_environment = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


class ViewState(str, Enum):
    LOADING = "loading"
    LIVE = "live"


@dataclass(slots=True)
class RenderedMessage:
    chat_id: int
    name: str
    text: str
    deletable: bool


class ChatView:
    """Client-side chat view: Loading until history is fetched, then Live.

    Push events received while still Loading are held back and applied after
    the history. Sending never renders locally; the sender's own message shows
    up only when its `message` event arrives.
    """

    def __init__(self, *, transport: ChatTransport, viewer_name: str | None = None) -> None:
        self._transport = transport
        self._viewer_name = viewer_name or None
        self._messages: list[RenderedMessage] = []
        self._pending: list[tuple[str, Any]] = []
        self.state = ViewState.LOADING
        self.draft = ""

    @property
    def messages(self) -> list[RenderedMessage]:
        return list(self._messages)

    def load(self) -> None:
        history = self._transport.fetch_history()
        self._messages = []
        for item in history:
            self._append(item)
        self.state = ViewState.LIVE
        pending, self._pending = self._pending, []
        for event, data in pending:
            self._apply(event, data)

    def handle_event(self, event: str, data: Any) -> None:
        if self.state is ViewState.LOADING:
            self._pending.append((event, data))
            return
        self._apply(event, data)

    def submit(self, text: str | None = None) -> bool:
        value = (self.draft if text is None else text).strip()
        if not value:
            return False
        self.draft = ""
        self._transport.post_message(value)
        return True

    def delete(self, chat_id: int) -> None:
        self._transport.delete_message(chat_id)
        self._remove(chat_id)

    def render(self) -> str:
        template = _environment.get_template("partials/messages.html")
        return template.render(state=self.state.value, messages=self._messages)

    def _apply(self, event: str, data: Any) -> None:
        if event == "message" and isinstance(data, dict):
            self._append(data)
        elif event == "messageDeleted":
            try:
                self._remove(int(data))
            except (TypeError, ValueError):
                return

    def _append(self, item: dict[str, Any]) -> None:
        try:
            chat_id = int(item["chatID"])
        except (KeyError, TypeError, ValueError):
            return
        if any(existing.chat_id == chat_id for existing in self._messages):
            return
        name = str(item.get("name") or "")
        self._messages.append(
            RenderedMessage(
                chat_id=chat_id,
                name=name,
                text=str(item.get("message") or ""),
                deletable=self._viewer_name is not None and name == self._viewer_name,
            )
        )

    def _remove(self, chat_id: int) -> None:
        self._messages = [item for item in self._messages if item.chat_id != chat_id]
