"""FastAPI backend for PostPilot."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import get_background_tasks
from api.error_handlers import register_error_handlers
from api.middleware import RequestContextMiddleware
from api.responses import ERROR_RESPONSES
from api.routes import health, platforms, posts, scheduling
from postpilot import config
from postpilot.db.engine import init_db
from postpilot.logging import configure_structlog, get_logger

configure_structlog(json_format=config.LOG_JSON, log_level=config.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not config.is_production():
        # Production schemas are managed outside the app
        init_db()
    logger.info("startup", environment=config.ENVIRONMENT)
    yield
    await get_background_tasks().drain()
    logger.info("shutdown")


app = FastAPI(
    title="PostPilot API",
    description="Enhance, publish and schedule social media posts",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware is added in reverse order of execution
app.add_middleware(RequestContextMiddleware)

# CORS for the client app (outermost - handles preflight requests)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register global error handlers
register_error_handlers(app)

# Scheduling first: /posts/scheduled must win over /posts/{post_id}
app.include_router(scheduling.router, prefix="/api", responses=ERROR_RESPONSES)
app.include_router(posts.router, prefix="/api", responses=ERROR_RESPONSES)
app.include_router(platforms.router, prefix="/api", responses=ERROR_RESPONSES)
app.include_router(health.router, prefix="/api")


@app.get("/health", include_in_schema=False)
async def root_health() -> dict:
    return {"status": "ok"}
