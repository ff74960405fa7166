"""
ARQ worker for the scheduled availability jobs.

Monday 14:00 UTC: weekly ping (stale reset runs first inside the job).
Daily 15:30 UTC: follow-up sweeper (warnings at 24h, suspensions at 48h).
The HTTP cron endpoints run the same service methods for external schedulers.
"""

import logging
import os
from urllib.parse import urlparse

from arq.connections import RedisSettings
from arq.cron import cron

from .config import Settings
from .database import Base, SessionLocal, init_engine
from .domain.availability.service import AvailabilityService
from .email_service import ResendEmailSender

logger = logging.getLogger(__name__)


def get_redis_settings(redis_url: str = None) -> RedisSettings:
    """Get Redis settings for ARQ worker"""
    redis_url = redis_url or os.getenv("REDIS_URL")

    if redis_url:
        parsed = urlparse(redis_url)
        return RedisSettings(
            host=parsed.hostname or "localhost",
            port=parsed.port or 6379,
            password=parsed.password,
            ssl=parsed.scheme == "rediss",
            conn_timeout=15,
            conn_retry_delay=1,
        )
    return RedisSettings(
        host=os.getenv("REDIS_HOST", "localhost"),
        port=int(os.getenv("REDIS_PORT", "6379")),
        conn_timeout=15,
        conn_retry_delay=1,
    )


async def startup(ctx):
    settings = Settings.from_env()
    engine = init_engine(settings)
    Base.metadata.create_all(bind=engine, checkfirst=True)
    ctx["settings"] = settings
    ctx["email_sender"] = ResendEmailSender(settings.resend_api_key)
    logger.info("🔧 Availability worker started")


async def shutdown(ctx):
    logger.info("👋 Availability worker shutting down")


async def availability_ping_task(ctx):
    """Weekly check-in: reset stale availability, then email one token per verified provider"""
    logger.info("Starting weekly availability ping")

    db = SessionLocal()
    try:
        summary = await AvailabilityService(db, ctx["settings"], ctx["email_sender"]).issue_weekly_pings()
        logger.info(f"Availability ping complete: {summary.model_dump()}")
        return summary.model_dump()
    except Exception as e:
        logger.error(f"❌ Availability ping failed: {str(e)}")
        raise
    finally:
        db.close()


async def availability_followup_task(ctx):
    """Daily sweep: warn unanswered tokens at 24h, suspend at 48h"""
    logger.info("Starting availability follow-up")

    db = SessionLocal()
    try:
        summary = await AvailabilityService(db, ctx["settings"], ctx["email_sender"]).run_followup()
        logger.info(f"Availability follow-up complete: {summary.model_dump()}")
        return summary.model_dump()
    except Exception as e:
        logger.error(f"❌ Availability follow-up failed: {str(e)}")
        raise
    finally:
        db.close()


class WorkerSettings:
    """ARQ Worker Settings"""

    functions = [availability_ping_task, availability_followup_task]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = get_redis_settings()

    job_timeout = int(os.getenv("ARQ_JOB_TIMEOUT", "600"))
    keep_result = int(os.getenv("ARQ_KEEP_RESULT", "3600"))
    health_check_interval = 60

    # No automatic retries: a partial run is finished by the next scheduled run
    max_tries = 1

    cron_jobs = [
        cron(availability_ping_task, weekday="mon", hour=14, minute=0, max_tries=1),
        cron(availability_followup_task, hour=15, minute=30, max_tries=1),
    ]
