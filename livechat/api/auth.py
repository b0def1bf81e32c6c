from __future__ import annotations

import logging

from fastapi import APIRouter, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from livechat.api.common import current_session, get_container, session_token, templates, trace_id
from livechat.errors import AuthError, ChatError, NotFoundError

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)

CHAT_VIEW_PATH = "/chat.html"


@router.get("/", response_class=HTMLResponse)
def index(request: Request) -> Response:
    return templates.TemplateResponse(request, "index.html", {})


@router.get("/register", response_class=HTMLResponse)
def register_page(request: Request) -> Response:
    return templates.TemplateResponse(request, "register.html", {})


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request) -> Response:
    return templates.TemplateResponse(request, "login.html", {})


@router.get(CHAT_VIEW_PATH, response_class=HTMLResponse)
def chat_page(request: Request) -> Response:
    session = current_session(request)
    return templates.TemplateResponse(
        request,
        "chat.html",
        {
            "profile_name": session.name if session else None,
            "max_length": get_container(request).message_service.max_length,
        },
    )


@router.post("/auth/register", response_class=HTMLResponse)
async def register(
    request: Request,
    name: str = Form(default=""),
    email: str = Form(default=""),
    password: str = Form(default=""),
    password_confirm: str = Form(default=""),
) -> Response:
    auth_service = get_container(request).auth_service
    try:
        message = await auth_service.register(
            name=name,
            email=email,
            password=password,
            confirm_password=password_confirm,
        )
    except ChatError as exc:
        logger.info(
            "register_rejected trace_id=%s reason=%s",
            trace_id(request),
            type(exc).__name__,
        )
        return templates.TemplateResponse(
            request,
            "register.html",
            {"message": exc.message, "name": name, "email": email},
            status_code=exc.status_code,
        )
    return templates.TemplateResponse(request, "register.html", {"message": message})


@router.post("/auth/login")
async def login(
    request: Request,
    name: str = Form(default=""),
    password: str = Form(default=""),
) -> Response:
    container = get_container(request)
    try:
        session = await container.auth_service.login(name=name, password=password)
    except ChatError as exc:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"message": exc.message, "name": name},
            status_code=exc.status_code,
        )
    response = RedirectResponse(CHAT_VIEW_PATH, status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        key=container.session_cookie_name,
        value=session.token,
        max_age=container.auth_service.session_ttl_sec,
        httponly=True,
        secure=container.cookie_secure,
        samesite="lax",
    )
    return response


@router.get("/profile", response_class=HTMLResponse)
async def profile(request: Request) -> Response:
    auth_service = get_container(request).auth_service
    try:
        account = await auth_service.get_profile(session=current_session(request))
    except (AuthError, NotFoundError):
        return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
    except ChatError as exc:
        return templates.TemplateResponse(
            request,
            "profile.html",
            {"message": exc.message},
            status_code=exc.status_code,
        )
    return templates.TemplateResponse(
        request,
        "profile.html",
        {"name": account.name, "email": account.email},
    )


@router.post("/profile/update", response_class=HTMLResponse)
async def update_profile(
    request: Request,
    name: str = Form(default=""),
    email: str = Form(default=""),
) -> Response:
    auth_service = get_container(request).auth_service
    try:
        account = await auth_service.update_profile(
            session=current_session(request),
            name=name,
            email=email,
        )
    except AuthError:
        return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
    except ChatError as exc:
        return templates.TemplateResponse(
            request,
            "profile.html",
            {"message": exc.message, "name": name, "email": email},
            status_code=exc.status_code,
        )
    return templates.TemplateResponse(
        request,
        "profile.html",
        {"message": "Profile updated.", "name": account.name, "email": account.email},
    )


@router.get("/logout")
def logout(request: Request) -> Response:
    container = get_container(request)
    try:
        container.auth_service.logout(token=session_token(request))
    except ChatError:
        logger.exception("logout_failed trace_id=%s", trace_id(request))
        return RedirectResponse(CHAT_VIEW_PATH, status_code=status.HTTP_303_SEE_OTHER)
    response = RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(key=container.session_cookie_name)
    return response
