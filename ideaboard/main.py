from contextlib import asynccontextmanager
from typing import Optional
import json
import logging
import traceback

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from ideaboard.database import Base, SessionLocal, engine
import ideaboard.models  # noqa: F401  # Ensure all SQLAlchemy models are registered
from ideaboard.errors import WorkshopError
from ideaboard.routers import auth as auth_router
from ideaboard.routers import clusters as clusters_router
from ideaboard.routers import co_admins as co_admins_router
from ideaboard.routers import folders as folders_router
from ideaboard.routers import ideas as ideas_router
from ideaboard.routers import participants as participants_router
from ideaboard.routers import sessions as sessions_router
from ideaboard.routers import voting as voting_router
from ideaboard.utils.logging_config import setup_logging

MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}
REDACTED_KEY_PARTS = ("password", "token")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    Base.metadata.create_all(bind=engine)
    logging.getLogger("ideaboard").info("Database initialized.")
    yield
    logging.getLogger("ideaboard").info("Application shutdown.")


app = FastAPI(
    title="IdeaBoard",
    description="Facilitated brainstorming workshops: collect, organize, vote, results",
    lifespan=lifespan,
)


def _summarize_payload(body: bytes) -> Optional[str]:
    if not body:
        return None
    try:
        parsed = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return "unavailable"
    if not isinstance(parsed, dict):
        return type(parsed).__name__
    redacted = {}
    for key, value in parsed.items():
        lower_key = str(key).lower()
        if any(part in lower_key for part in REDACTED_KEY_PARTS):
            redacted[key] = "***"
        elif isinstance(value, (str, int, float, bool, type(None))):
            redacted[key] = value
        else:
            redacted[key] = type(value).__name__
    return json.dumps(redacted, ensure_ascii=True)


async def audit_action_middleware(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    method = request.method.upper()
    path = request.url.path
    if method not in MUTATING_METHODS or not path.startswith("/api/"):
        return await call_next(request)

    payload_summary: Optional[str] = None
    if request.headers.get("content-type", "").lower().startswith("application/json"):
        payload_summary = _summarize_payload(await request.body())

    response = await call_next(request)

    # Set by the auth dependency when the request carried a valid cookie.
    user = getattr(request.state, "user", None)
    if user is None:
        return response

    details = {
        "method": method,
        "path": path,
        "status": response.status_code,
        "user": getattr(user, "login", None) or "unknown",
    }
    if payload_summary:
        details["payload"] = payload_summary
    logging.getLogger("audit").info("Audit action: %s", details)
    return response


app.add_middleware(BaseHTTPMiddleware, dispatch=audit_action_middleware)

# Include routers
app.include_router(auth_router.router)
app.include_router(folders_router.router)
app.include_router(sessions_router.router)
app.include_router(ideas_router.ideas_router)
app.include_router(clusters_router.clusters_router)
app.include_router(participants_router.router)
app.include_router(co_admins_router.session_co_admin_router)
app.include_router(co_admins_router.router)
app.include_router(voting_router.router)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger = logging.getLogger("ideaboard")
    logger.error(f"Global exception: {str(exc)}\n{traceback.format_exc()}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error. Please check logs."},
    )


@app.exception_handler(WorkshopError)
async def workshop_exception_handler(request: Request, exc: WorkshopError):
    logger = logging.getLogger("ideaboard")
    if exc.status_code >= 500:
        logger.error(f"{exc.code} ({exc.status_code}): {exc.detail}")
    else:
        logger.info(f"{exc.code} ({exc.status_code}): {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger = logging.getLogger("ideaboard")
    if exc.status_code >= 500:
        logger.error(
            f"HTTP {exc.status_code} error: {exc.detail}\n{traceback.format_exc()}"
        )
    else:
        logger.info(f"HTTP {exc.status_code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger = logging.getLogger("ideaboard")
    # Only the messages, so the body is always serializable
    error_messages = [err["msg"] for err in exc.errors()]
    logger.warning(f"Validation error: {error_messages}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": error_messages},
    )


@app.get("/health", tags=["healthcheck"])
async def health_check():
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logging.getLogger("ideaboard").error("Health check database error: %s", e)
        raise HTTPException(
            status_code=503, detail=f"Database connection failed: {str(e)}"
        )
    finally:
        db.close()
    return {"status": "healthy", "database": "connected"}
