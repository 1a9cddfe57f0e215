import asyncio
import logging
import os
from dotenv import load_dotenv  # load .env variables

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sqlalchemy.exc import DBAPIError, OperationalError

import eventify.database as database

# ----- Load environment variables -----
load_dotenv()

# ----- Logging -----
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger("eventify")

# ----- Routers -----
from eventify.routes import auth as auth_routes
from eventify.routes.achievements import router as achievements_router
from eventify.routes.checkin import router as checkin_router
from eventify.routes.dashboard import router as dashboard_router
from eventify.routes import events as event_routes
from eventify.routes import feedback as feedback_routes
from eventify.routes.reactions import router as reactions_router
from eventify.routes.realtime import router as realtime_router
from eventify.routes import registrations as registration_routes

# ----- FastAPI app -----
app = FastAPI(
    title="Eventify API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# ----- CORS (enabled only if ALLOWED_ORIGINS is set) -----
raw_origins = os.getenv("ALLOWED_ORIGINS", "").strip()
if raw_origins:
    allowed_origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=[
            "Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With"
        ],
        expose_headers=["Content-Disposition"],
        max_age=86400,
    )

# ----- Include routers -----
app.include_router(auth_routes.router, prefix="/auth")
# short aliases kept for older clients
app.add_api_route("/register", auth_routes.register, methods=["POST"], status_code=201, include_in_schema=False)
app.add_api_route("/login", auth_routes.login, methods=["POST"], include_in_schema=False)

app.include_router(dashboard_router)
app.include_router(event_routes.router)          # /events ...
app.include_router(event_routes.admin)           # /admin/events ...
app.include_router(registration_routes.router)
app.include_router(registration_routes.admin)
app.include_router(feedback_routes.router)
app.include_router(feedback_routes.admin)
app.include_router(achievements_router)
app.include_router(reactions_router)
app.include_router(checkin_router)
app.include_router(realtime_router)


# ----- Errors -----
@app.exception_handler(StarletteHTTPException)
async def not_found_with_path(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse(status_code=404, content={"detail": "Not Found", "path": request.url.path})
    return await http_exception_handler(request, exc)


@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.on_event("startup")
async def on_startup():
    """Ensure database connectivity with simple retry logic."""

    max_attempts = int(os.getenv("DB_INIT_MAX_ATTEMPTS", "10"))
    base_delay = float(os.getenv("DB_INIT_RETRY_SECONDS", "1.0"))

    attempt = 0
    while True:
        attempt += 1
        try:
            await database.init_models()
        except (OperationalError, DBAPIError, OSError) as exc:  # pragma: no cover - depends on timing
            if attempt >= max_attempts:
                logger.exception("Database not reachable after %s attempts", attempt)
                raise

            wait_time = base_delay * min(2 ** (attempt - 1), 8)
            logger.warning(
                "Database not ready (attempt %s/%s): %s. Retrying in %.1f seconds...",
                attempt,
                max_attempts,
                exc,
                wait_time,
            )
            await asyncio.sleep(wait_time)
        else:
            logger.info("Eventify API started and database tables ensured.")
            break


# ----- Meta endpoints -----
@app.get("/", tags=["meta"])
async def root():
    return {"name": "Eventify API", "version": app.version, "docs": app.docs_url}


@app.get("/health", tags=["meta"])
async def health():
    return {"ok": True}


# Avoid logging secrets like DATABASE_URL / JWT_SECRET; log booleans instead.
if os.getenv("DATABASE_URL"):
    logger.info("DATABASE_URL loaded.")
if os.getenv("JWT_SECRET"):
    logger.info("JWT_SECRET loaded.")
