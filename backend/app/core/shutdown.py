"""
Startup and graceful shutdown for the Employee API Gateway.
Seeds demo accounts on startup and releases outbound resources on shutdown.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Callable, List

from app.core.config import settings

logger = logging.getLogger("employee_api.shutdown")


class GracefulShutdownManager:
    """Runs registered cleanup callbacks once, in registration order."""

    def __init__(self):
        self._shutdown_requested = False
        self._shutdown_callbacks: List[Callable] = []

    def add_shutdown_callback(self, callback: Callable) -> None:
        """Register a sync or async callback to run during shutdown."""
        self._shutdown_callbacks.append(callback)

    async def shutdown(self) -> None:
        if self._shutdown_requested:
            return

        self._shutdown_requested = True
        logger.info(f"Running {len(self._shutdown_callbacks)} shutdown callbacks...")
        for callback in self._shutdown_callbacks:
            try:
                result = callback()
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                # One failing cleanup must not skip the others
                logger.error(f"Error in shutdown callback: {e}")

        logger.info("Graceful shutdown complete")


@asynccontextmanager
async def lifespan_manager(app):
    """
    FastAPI lifespan context manager for startup/shutdown.

    Usage:
        app = FastAPI(lifespan=lifespan_manager)
    """
    from app.core.credential_store import close_credential_store, get_credential_store, seed_demo_users
    from app.services.employee_client import close_employee_client

    logger.info("Application starting up...")
    shutdown_manager = GracefulShutdownManager()

    if settings.SEED_DEMO_USERS:
        await seed_demo_users(get_credential_store())

    shutdown_manager.add_shutdown_callback(close_employee_client)
    shutdown_manager.add_shutdown_callback(close_credential_store)
    logger.info("Application startup complete")

    try:
        yield
    finally:
        logger.info("Application shutting down...")
        await shutdown_manager.shutdown()
