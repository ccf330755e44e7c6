"""Aggregate all API routers."""

from fastapi import APIRouter
from videobg.api.v1.health import router as health_router
from videobg.api.v1.upload import router as upload_router
from videobg.api.v1.videos import router as videos_router
from videobg.api.v1.webhook import router as webhook_router

api_router = APIRouter(prefix="/api")
api_router.include_router(health_router, tags=["health"])
api_router.include_router(upload_router, tags=["upload"])
api_router.include_router(webhook_router, tags=["webhook"])
api_router.include_router(videos_router, tags=["videos"])
