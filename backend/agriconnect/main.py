"""
FastAPI application entry point.
"""
import asyncio
import logging
from typing import Optional
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from agriconnect.api import prices
from agriconnect.core.config import get_settings
from agriconnect.core.container import ServiceContainer, build_container
from agriconnect.core.sync_log import configure_sync_logging

logger = logging.getLogger(__name__)
app_settings = get_settings()


def create_app(container: Optional[ServiceContainer] = None, enable_scheduler: Optional[bool] = None) -> FastAPI:
    """Build the application around a service container."""
    container = container or build_container()
    if enable_scheduler is None:
        enable_scheduler = app_settings.enable_price_scheduler

    application = FastAPI(
        title="AgriConnect Market Prices API",
        description="Botswana market prices: sync, alerts and cached reads",
        version="0.1.0",
    )
    application.state.container = container

    # CORS middleware (adjust origins for production)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    application.include_router(prices.router, prefix="/api/prices", tags=["prices"])

    @application.get("/health", tags=["health"])
    def health():
        return {
            "status": "ok",
            "scheduler": container.scheduler.get_status(),
            "cache": container.cache.get_stats(),
        }

    @application.websocket("/live/prices")
    async def live_prices(websocket: WebSocket):
        await container.broadcaster.connect(websocket)
        try:
            while True:
                # Clients only listen; drain anything they send
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            container.broadcaster.disconnect(websocket)

    @application.on_event("startup")
    async def startup_event():
        """Initialize services on startup."""
        configure_sync_logging()
        container.broadcaster.attach_loop(asyncio.get_running_loop())
        if enable_scheduler:
            container.scheduler.start()
        else:
            logger.info("Price scheduler disabled for this process")

    @application.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown."""
        container.scheduler.stop()

    return application


app = create_app()
