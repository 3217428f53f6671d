"""
Health check handler.
"""

import time

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ...core.exceptions import StorageError
from ...core.logging import get_logger
from ..container import ServiceContainer

logger = get_logger("harmony.http")


class ServiceStatus(BaseModel):
    """Process-level status of the booking service."""

    status: str
    version: str
    store_backend: str
    clinic_time: str
    uptime_seconds: float


class HealthHandler:
    """Liveness, readiness and status endpoints."""

    def __init__(self, container: ServiceContainer):
        self.container = container
        self.started = time.monotonic()
        self.router = APIRouter()
        self._setup_routes()

    def _setup_routes(self):
        """Setup health check routes."""
        settings = self.container.settings

        @self.router.get("/", response_model=ServiceStatus)
        async def service_status():
            """Version, store backend and the clinic wall clock."""
            return ServiceStatus(
                status="healthy",
                version=settings.app_version,
                store_backend=settings.store_backend,
                clinic_time=self.container.clock.now().isoformat(),
                uptime_seconds=round(time.monotonic() - self.started, 3),
            )

        @self.router.get("/ready")
        async def readiness():
            try:
                await self.container.store.ping()
            except StorageError as e:
                logger.warning("Store not reachable: %s", e)
                return JSONResponse(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    content={"status": "unavailable", "store": settings.store_backend},
                )
            return {"status": "ready", "store": settings.store_backend}

        @self.router.get("/live")
        async def liveness():
            return {"status": "alive"}
