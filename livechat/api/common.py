from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.requests import HTTPConnection

from livechat.container import ServiceContainer
from livechat.services.auth_service import SessionRecord

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATE_DIR))


def get_container(connection: HTTPConnection) -> ServiceContainer:
    return connection.app.state.container


def session_token(request: Request) -> str | None:
    container = get_container(request)
    return request.cookies.get(container.session_cookie_name)


def current_session(request: Request) -> SessionRecord | None:
    container = get_container(request)
    return container.auth_service.get_session(token=session_token(request))


def trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "-")


async def read_payload(request: Request) -> dict[str, Any]:
    """Body fields from either a JSON object or a url-encoded/multipart form."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}
