"""
ServerApp - Composition Root

This module contains the ServerApp class, which is responsible for:
- FastAPI application setup and configuration
- Dependency injection and component wiring
- Application lifecycle management (startup/shutdown)
- Statistics

Composition root - wires up all components with proper dependency injection.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .canvas_store import CanvasStore
from .config import CanvasConfig, default_config, load_from_toml
from .store_backend import StoreBackend, StoreUnavailableError, create_store_backend


logger = logging.getLogger(__name__)


class ServerApp:
    """
    Application composition root for the place canvas server.

    Handles FastAPI setup, dependency injection, and lifecycle management.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        canvas_config: Optional[CanvasConfig] = None,
        backend: Optional[StoreBackend] = None,
    ):
        self.config_path = Path(config_path) if config_path else Path("config.toml")

        # Core components - initialized during startup unless injected
        self.canvas_config: Optional[CanvasConfig] = canvas_config
        self.backend: Optional[StoreBackend] = backend
        self.canvas_store: Optional[CanvasStore] = None

        self.app: Optional[FastAPI] = None
        self._started: bool = False

        logger.info(f"ServerApp initialized with config: {self.config_path}")

    async def startup(self) -> None:
        """Initialize all application components with proper dependency injection."""
        logger.info("Starting up server application...")

        try:
            self._load_configuration()
            self._create_canvas_store()

            await self.canvas_store.connect()

            logger.info("Server application startup completed successfully")
            self._started = True

        except Exception as e:
            logger.error(f"Server application startup failed: {e}")
            await self.shutdown()  # Cleanup on failure
            raise

    async def shutdown(self) -> None:
        """Cleanup all application components."""
        logger.info("Shutting down server application...")

        try:
            if self.canvas_store and self.canvas_store.is_connected():
                await self.canvas_store.disconnect()

            self._started = False
            logger.info("Server application shutdown completed")

        except StoreUnavailableError as e:
            logger.error(f"Error during shutdown: {e}")

    def create_app(self) -> FastAPI:
        """Create the FastAPI application; startup/shutdown run in its lifespan."""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            started_here = False
            if not self._started:
                await self.startup()
                started_here = True
            try:
                yield
            finally:
                if started_here and self._started:
                    await self.shutdown()

        self.app = FastAPI(
            title="Place Canvas Server",
            description="REST API for a shared packed-bitfield canvas",
            version="1.0.0",
            lifespan=lifespan,
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self._allowed_origins(),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        from .api import router

        # Attach server instance for the get_server dependency
        self.app.state.server = self
        self.app.include_router(router, prefix="/api")

        logger.debug("Created FastAPI application with dependency injection")
        return self.app

    # Private initialization methods

    def _load_configuration(self) -> None:
        """Load canvas configuration from file or use defaults."""
        if self.canvas_config is not None:
            return
        if self.config_path.exists():
            logger.info(f"Loading configuration from {self.config_path}")
            self.canvas_config = load_from_toml(self.config_path)
        else:
            logger.warning(
                f"Config file {self.config_path} not found, using default configuration"
            )
            self.canvas_config = default_config()

    def _create_canvas_store(self) -> None:
        if not self.canvas_config:
            raise RuntimeError("Canvas config not loaded")

        if self.backend is None:
            self.backend = create_store_backend(self.canvas_config.store)

        self.canvas_store = CanvasStore(self.canvas_config, backend=self.backend)
        logger.debug("Created canvas store with dependency injection")

    def _allowed_origins(self) -> list[str]:
        raw = os.getenv("ALLOWED_ORIGINS", "*")
        raw = raw.strip()
        if raw == "*" or raw == "":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]

    def get_stats(self) -> dict:
        if not self.canvas_store:
            return {"running": False, "message": "server not initialized"}

        return {
            "running": self._started,
            "canvas": self.canvas_store.get_stats(),
        }
