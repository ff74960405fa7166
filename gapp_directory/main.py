import logging
from contextlib import asynccontextmanager
from typing import Optional

import redis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .config import Settings
from .database import Base, init_engine
from .domain.admin.router import router as admin_router
from .domain.availability.router import router as availability_router
from .domain.billing.router import router as billing_router
from .domain.leads.router import router as leads_router
from .domain.providers.router import router as providers_router
from .email_service import EmailSender, ResendEmailSender
from .rate_limiter import get_redis_client
from .security_headers import SecurityHeadersMiddleware

# Same format in the API and the worker
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Keep HTTP client chatter out of request logs
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(f"🚀 GAPP directory API starting ({settings.environment})")

    engine = init_engine(settings)
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
    except SQLAlchemyError as e:
        # Several uvicorn workers may race to create the same tables
        if "already exists" not in str(e):
            logger.error(f"❌ Could not create tables: {e}")
            raise
    logger.info("✅ Database schema ready")

    if settings.redis_url:
        try:
            get_redis_client(settings).ping()
            logger.info("✅ Redis reachable, rate limits are shared")
        except redis.RedisError as e:
            logger.warning(f"⚠️ Redis unreachable, rate limits stay in memory: {e}")

    yield
    logger.info("👋 GAPP directory API stopped")


def create_app(settings: Optional[Settings] = None, email_sender: Optional[EmailSender] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    app = FastAPI(title="GAPP Provider Directory API", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.email_sender = email_sender or ResendEmailSender(settings.resend_api_key)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"⚠️ Rejected {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"❌ Unhandled error on {request.method} {request.url.path}: {e}")
            raise

    if settings.security_headers_enabled:
        app.add_middleware(
            SecurityHeadersMiddleware,
            is_production=settings.is_production,
            exclude_paths=["/health", "/docs", "/openapi.json"],
        )
        logger.info("🔒 Security headers on")
    else:
        logger.warning("⚠️ Security headers off (SECURITY_HEADERS_ENABLED=false)")

    logger.info(f"🌐 CORS origins: {settings.allowed_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(providers_router)
    app.include_router(leads_router)
    app.include_router(availability_router)
    app.include_router(billing_router)
    app.include_router(admin_router)

    @app.get("/")
    def root():
        return {"message": "GAPP Provider Directory API is running"}

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    # pydantic v2 puts the raw exception in ctx for custom validators
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return errors


app = create_app()
