#!/usr/bin/env python3
"""
Place Canvas Server - Main Application Entry Point
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI

from .server_app import ServerApp

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(config_path: Optional[Path] = None) -> FastAPI:
    """Create FastAPI application with proper configuration."""
    return ServerApp(config_path).create_app()


def run_server(
    host: str = "0.0.0.0",
    port: int = 8000,
    config_path: Optional[str] = None,
    reload: bool = False,
) -> None:
    """Run the server with the given configuration."""
    if reload:
        # Development mode with hot reload; config comes from ./config.toml
        uvicorn.run(
            "place_server.main:create_app", host=host, port=port, reload=True, factory=True
        )
        return

    app = create_app(Path(config_path) if config_path else None)
    logger.info(f"Starting server on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")


def main() -> None:
    parser = argparse.ArgumentParser(description="Place Canvas Server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--config", help="Path to configuration file")
    parser.add_argument(
        "--reload", action="store_true", help="Enable hot reload (development)"
    )

    args = parser.parse_args()

    try:
        run_server(
            host=args.host,
            port=args.port,
            config_path=args.config,
            reload=args.reload,
        )
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
