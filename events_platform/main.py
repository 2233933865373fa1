import asyncio
import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv  # load .env variables
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import DBAPIError, OperationalError

import events_platform.database as database
from events_platform.errors import register_error_handlers

# ----- Load environment variables -----
load_dotenv()

# ----- Logging -----
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger("events_platform")

# ----- Routers -----
from events_platform.routes.auth import router as auth_router  # noqa: E402
from events_platform.routes.events import router as events_router  # noqa: E402
from events_platform.routes.registrations import router as registrations_router  # noqa: E402


async def wait_for_database() -> None:
    """Create tables, retrying with backoff while the database comes up."""

    max_attempts = int(os.getenv("DB_INIT_MAX_ATTEMPTS", "10"))
    base_delay = float(os.getenv("DB_INIT_RETRY_SECONDS", "1.0"))

    attempt = 0
    while True:
        attempt += 1
        try:
            await database.init_models()
        except (OperationalError, DBAPIError, OSError) as exc:
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
            logger.info("Events API started and database tables ensured.")
            return


@asynccontextmanager
async def lifespan(app: FastAPI):
    await wait_for_database()
    yield
    await database.engine.dispose()


# ----- FastAPI app -----
app = FastAPI(
    title="Events Platform API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

register_error_handlers(app)

# ----- CORS (enabled only if ALLOWED_ORIGINS is set) -----
raw_origins = os.getenv("ALLOWED_ORIGINS", "").strip()
if raw_origins:
    allowed_origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "Origin"],
        max_age=86400,
    )

# ----- Include routers -----
app.include_router(auth_router, prefix="/api")
app.include_router(events_router, prefix="/api")
app.include_router(registrations_router, prefix="/api")


# ----- Health check endpoint -----
@app.get("/health", tags=["meta"])
async def health():
    return {"ok": True}


# Log whether secrets are configured, never their values.
if os.getenv("DATABASE_URL"):
    logger.info("DATABASE_URL loaded.")
if not os.getenv("JWT_SECRET"):
    logger.warning("JWT_SECRET not set; using the development default.")
