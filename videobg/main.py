"""videobg - background removal job service (FastAPI application)."""

import logging
from contextlib import asynccontextmanager
from typing import Optional, Tuple

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from videobg.config import Settings, settings as default_settings
from videobg.error_handlers import install_error_handlers
from videobg.logging_config import configure_logging
from videobg.api.v1.router import api_router
from videobg.api.v1.health import router as health_root_router
from videobg.api.v1 import upload as upload_api
from videobg.api.v1 import videos as videos_api
from videobg.api.v1 import webhook as webhook_api
from videobg.jobs.notifications import NotificationRouter
from videobg.jobs.orchestrator import JobOrchestrator
from videobg.jobs.poller import StatusPoller
from videobg.jobs.provider import UnscreenProvider, VideoProvider
from videobg.jobs.push import PushReceiver
from videobg.jobs.scheduler import AsyncioScheduler, Scheduler
from videobg.jobs.submitter import JobSubmitter
from videobg.storage.job_records import JobRecordStore

logger = logging.getLogger(__name__)


def build_orchestrator(
    settings: Settings,
    provider: VideoProvider,
    scheduler: Optional[Scheduler] = None,
) -> Tuple[JobOrchestrator, PushReceiver]:
    """Assemble the core from explicit configuration."""
    store = JobRecordStore(path=settings.job_records_path)
    submitter = JobSubmitter(provider, NotificationRouter(settings.webhook_host))
    poller = StatusPoller(
        provider,
        scheduler or AsyncioScheduler(),
        interval=settings.poll_interval_seconds,
    )
    orchestrator = JobOrchestrator(
        provider,
        submitter,
        poller,
        store,
        wait_timeout=settings.wait_timeout_seconds,
    )
    return orchestrator, PushReceiver(store)


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[VideoProvider] = None,
    scheduler: Optional[Scheduler] = None,
) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown logic."""
        configure_logging(settings.log_level)

        active_provider = provider or UnscreenProvider(
            settings.unscreen_api_url,
            settings.unscreen_api_key,
            timeout=settings.provider_timeout_seconds,
        )
        if not settings.unscreen_api_key and provider is None:
            logger.warning("UNSCREEN_API_KEY is not set; provider calls will be rejected")

        orchestrator, receiver = build_orchestrator(settings, active_provider, scheduler)
        logger.info("Starting videobg on port %d", settings.port)
        logger.info("Notification mode: %s", orchestrator.notification_mode.value)
        if settings.job_records_path:
            logger.info("Job records: %s", settings.job_records_path)

        # Wire the core into API endpoints
        upload_api.set_orchestrator(orchestrator)
        videos_api.set_orchestrator(orchestrator)
        webhook_api.set_receiver(receiver)
        app.state.orchestrator = orchestrator

        yield

        logger.info("Shutting down videobg")
        upload_api.set_orchestrator(None)
        videos_api.set_orchestrator(None)
        webhook_api.set_receiver(None)
        await active_provider.close()

    application = FastAPI(
        title="videobg",
        description="Submit videos for background removal and track completion",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(application)

    application.include_router(health_root_router, tags=["health"])  # GET /health at root
    application.include_router(api_router)  # All /api/* endpoints
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("videobg.main:app", host="0.0.0.0", port=default_settings.port, log_level="info")
