import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis
import sentry_sdk
from fastapi import FastAPI
from sqlalchemy import text

from alertaseguro.config import settings
from alertaseguro.database import engine
from alertaseguro.services.notification_service import ApnsPushTransport

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize Sentry
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.2 if settings.ENVIRONMENT == "production" else 1.0,
        send_default_pii=False,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: verify DB connection and connect Redis
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))

    app.state.redis = redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    await app.state.redis.ping()

    # Without a transport, owners inside their window report transport-error
    app.state.push_transport = ApnsPushTransport.from_settings()
    logger.info("AlertaSeguro started (%s)", settings.ENVIRONMENT)

    yield

    # Shutdown
    await app.state.redis.close()
    await engine.dispose()


app = FastAPI(
    title="AlertaSeguro API",
    version="0.1.0",
    lifespan=lifespan,
)
app.state.push_transport = None

# Middleware
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from alertaseguro.middleware.rate_limit import RateLimitMiddleware  # noqa: E402

app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-User-Id"],
)

from alertaseguro.middleware.error_handler import register_error_handlers  # noqa: E402

register_error_handlers(app)

# Routers
from alertaseguro.routers.auth import router as auth_router  # noqa: E402
from alertaseguro.routers.esp import router as esp_router  # noqa: E402
from alertaseguro.routers.events import router as events_router  # noqa: E402
from alertaseguro.routers.push_tokens import router as push_tokens_router  # noqa: E402
from alertaseguro.routers.schedules import router as schedules_router  # noqa: E402

app.include_router(auth_router)
app.include_router(push_tokens_router)
app.include_router(esp_router)
app.include_router(schedules_router)
app.include_router(events_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
