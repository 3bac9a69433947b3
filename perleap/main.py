from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from perleap.api.activities import router as activities_router
from perleap.api.assessments import router as assessments_router
from perleap.api.chat import router as chat_router
from perleap.api.courses import router as courses_router
from perleap.api.dashboard import router as dashboard_router
from perleap.api.health import router as health_router
from perleap.api.metrics_endpoint import router as metrics_router
from perleap.api.profile import router as profile_router
from perleap.api.runs import router as runs_router
from perleap.core.config import SETTINGS
from perleap.core.errors import AppError
from perleap.core.logging import setup_logging
from perleap.db.engine import lifespan_db
from perleap.db.store import memory_store
from perleap.middleware.metrics import MetricsMiddleware
from perleap.middleware.request_context import RequestContextMiddleware
from perleap.services.llm_client import ChatCompletionClient

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    async with lifespan_db():
        try:
            yield
        finally:
            await app.state.llm.aclose()


app = FastAPI(
    title="perleap-service",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

# Shared per-process resources, reached from routes through api.dependencies.
app.state.memory_store = memory_store()
app.state.llm = ChatCompletionClient(
    api_key=SETTINGS.openai_api_key,
    base_url=SETTINGS.openai_base_url,
    timeout=SETTINGS.llm_timeout_seconds,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# Middleware execution order: last-added runs first (outermost layer).
# RequestContext (outermost) → Metrics → CORS → route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(HTTPException)
async def http_error_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=422,
        content={"error": f"{where}: {message}" if where else message},
    )


app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(profile_router)
app.include_router(courses_router)
app.include_router(activities_router)
app.include_router(runs_router)
app.include_router(chat_router)
app.include_router(assessments_router)
app.include_router(dashboard_router)

logger.info(
    "perleap-service started  env=%s log_level=%s port=%d db=%s model_api=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "postgres" if SETTINGS.database_url else "memory",
    "on" if SETTINGS.llm_configured else "off",
)
