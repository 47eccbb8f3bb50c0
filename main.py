"""FastAPI entry point for the Mark Scheme Coach marking service."""

import logging

import litellm
import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import get_settings
from models.errors import ErrorCode, error_body
from services.concurrency import ConcurrencyLimitMiddleware
from services.middleware import RequestIdMiddleware

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ── Global LiteLLM settings ──────────────────────────────────
litellm.request_timeout = settings.marking_timeout

app = FastAPI(
    title="Mark Scheme Coach",
    description="Rubric parsing, live answer matching and highlight rendering",
    version="0.1.0",
)

# ── Middleware stack (outermost first) ─────────────────────────
# Order matters: CORS → RequestId → ConcurrencyLimit → route handler
app.add_middleware(ConcurrencyLimitMiddleware)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            **error_body(ErrorCode.INVALID_REQUEST, "Invalid request body"),
            "errors": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "-")
    logger.exception("Unhandled error on %s [%s]", request.url.path, request_id)
    return JSONResponse(
        status_code=500,
        content=error_body(ErrorCode.INTERNAL_ERROR, "Internal server error"),
    )


# ── Register routers ────────────────────────────────────────
from api.analysis import router as analysis_router  # noqa: E402
from api.health import router as health_router  # noqa: E402
from api.marking import router as marking_router  # noqa: E402

app.include_router(health_router)
app.include_router(analysis_router)
app.include_router(marking_router)


if __name__ == "__main__":
    if settings.debug:
        uvicorn.run("main:app", host="0.0.0.0", port=settings.service_port, reload=True)
    else:
        # Production: gunicorn main:app -c deploy/gunicorn.conf.py
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            workers=4,
        )
