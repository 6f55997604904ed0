from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from occasions.api.router import api_router
from occasions.config import get_settings
from occasions.db.database import init_db
from occasions.scheduler.runner import start_scheduler, stop_scheduler

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Occasion notifier starting ({settings.environment})")
    await init_db()

    # Cron endpoints can drive the jobs instead of the in-process scheduler
    if settings.scheduler_enabled:
        start_scheduler()
    else:
        logger.info("In-process scheduler disabled")

    yield

    stop_scheduler()
    logger.info("Occasion notifier stopped")


def create_app() -> FastAPI:
    # No interactive docs in production
    docs_enabled = not settings.is_production
    application = FastAPI(
        title="Occasion Notifier API",
        description="Birthday, holiday and custom-date notifications with auto-coupons",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Admin-Key"],
    )
    application.include_router(api_router)

    @application.get("/health")
    async def health_check():
        return {"status": "ok"}

    return application


app = create_app()
