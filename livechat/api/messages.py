from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, WebSocket, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from livechat.api.common import current_session, get_container, read_payload, trace_id
from livechat.errors import ChatError
from livechat.schemas import (
    DeleteMessageRequest,
    DeleteMessageResponse,
    MessageItem,
    PostMessageRequest,
)

router = APIRouter(tags=["messages"])
logger = logging.getLogger(__name__)


@router.get("/message", response_model=list[MessageItem])
async def list_messages(request: Request) -> list[MessageItem]:
    message_service = get_container(request).message_service
    try:
        messages = await message_service.list_messages()
    except ChatError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return [MessageItem(chat_id=item.chat_id, message=item.text, name=item.name) for item in messages]


@router.post("/message")
async def post_message(request: Request) -> dict[str, object]:
    message_service = get_container(request).message_service
    session = current_session(request)
    if session is None:
        logger.info("message_rejected trace_id=%s reason=no_session", trace_id(request))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required.")
    try:
        body = PostMessageRequest.model_validate(await read_payload(request))
    except PydanticValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message must be text.",
        ) from exc
    try:
        message = await message_service.post_message(session=session, text=body.message)
    except ChatError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return {"ok": True, "chatID": message.chat_id}


@router.post("/message/delete")
async def delete_message(request: Request) -> dict[str, object]:
    message_service = get_container(request).message_service
    try:
        body = DeleteMessageRequest.model_validate(await read_payload(request))
    except PydanticValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid message id.",
        ) from exc
    try:
        chat_id = await message_service.delete_message(message_id=body.message_id)
    except ChatError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return {"ok": True, "chatID": chat_id}


@router.delete("/message/{message_id}", response_model=DeleteMessageResponse)
async def delete_message_by_id(message_id: str, request: Request) -> JSONResponse:
    message_service = get_container(request).message_service
    try:
        await message_service.delete_message(message_id=message_id)
    except ChatError as exc:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=DeleteMessageResponse(message="Message deleted successfully").model_dump(),
    )


@router.websocket("/ws")
async def push_channel(websocket: WebSocket) -> None:
    broadcaster = get_container(websocket).broadcaster
    await websocket.accept()
    broadcaster.add(websocket)
    try:
        while True:
            # Inbound frames of any kind are ignored; the socket is push-only.
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
    finally:
        broadcaster.discard(websocket)
