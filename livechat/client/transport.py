from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from livechat.errors import AuthError, ChatError, DatastoreError, ValidationError

logger = logging.getLogger(__name__)


class ChatTransport(Protocol):
    def fetch_history(self) -> list[dict[str, Any]]: ...

    def post_message(self, text: str) -> None: ...

    def delete_message(self, chat_id: int) -> None: ...


class HttpChatTransport:
    """Request/response side of the chat view over an httpx client.

    The client is expected to carry the session cookie already (a browser-like
    cookie jar after a login POST).
    """

    def __init__(self, *, client: httpx.Client) -> None:
        self._client = client

    def fetch_history(self) -> list[dict[str, Any]]:
        response = self._send("GET", "/message")
        payload = response.json()
        if not isinstance(payload, list):
            raise DatastoreError("Unexpected history payload.")
        return [item for item in payload if isinstance(item, dict)]

    def post_message(self, text: str) -> None:
        self._send("POST", "/message", data={"message": text})

    def delete_message(self, chat_id: int) -> None:
        self._send("POST", "/message/delete", data={"messageID": str(chat_id)})

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("chat_transport_error method=%s url=%s error=%s", method, url, exc)
            raise DatastoreError() from exc
        if response.status_code == 401:
            raise AuthError("Login required.")
        if response.status_code >= 500:
            raise DatastoreError()
        if response.status_code >= 400:
            raise ValidationError(_detail(response))
        return response


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or ChatError.__name__
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or body)
    return str(body)
