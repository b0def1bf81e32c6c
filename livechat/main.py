import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from livechat.api.auth import router as auth_router
from livechat.api.common import TEMPLATE_DIR
from livechat.api.messages import router as messages_router
from livechat.container import build_container
from livechat.schemas import HealthResponse
from livechat.startup_self_check import run_startup_self_check

logging.basicConfig(
    level=os.getenv("LIVECHAT_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(_app: FastAPI):  # type: ignore[no-untyped-def]
    container = _app.state.container
    try:
        container.database.create_all()
    except SQLAlchemyError:
        logger.exception("schema_create_failed")
    _app.state.startup_self_check = run_startup_self_check(
        database=container.database,
        template_dir=TEMPLATE_DIR,
        logger=logger,
    )
    yield
    await container.shutdown()
    logger.info("shutdown_complete")


app = FastAPI(title="Livechat", version="0.1.0", lifespan=lifespan)
app.state.container = build_container()
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.middleware("http")
async def attach_trace_id(request: Request, call_next):  # type: ignore[no-untyped-def]
    trace_id = request.headers.get("x-trace-id") or str(uuid4())
    request.state.trace_id = trace_id
    response = await call_next(request)
    response.headers["x-trace-id"] = trace_id
    return response


@app.get("/healthz", response_model=HealthResponse)
def healthz() -> HealthResponse:
    startup = getattr(app.state, "startup_self_check", None)
    issues = list(startup.issues) if startup is not None else ["startup_self_check_not_available"]
    return HealthResponse(
        status="degraded" if issues else "ok",
        service="livechat",
        issues=issues,
    )


app.include_router(auth_router)
app.include_router(messages_router)
