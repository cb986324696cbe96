"""
Place Canvas Server API - REST endpoints

Provides the transport surface for the shared canvas:
- Reset, Draw and Fetch endpoints for the packed canvas
- Health, config and stats endpoints for operators
"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel

from .range_transcoder import render
from .store_backend import StoreUnavailableError
from .validation import ValidationError

logger = logging.getLogger(__name__)

# API Router for REST endpoints
router = APIRouter()


# Dependency provider for DI
def get_server(request: Request):
    server = getattr(request.app.state, "server", None)
    if server is None or server.canvas_store is None:
        raise HTTPException(status_code=503, detail="Server not ready")
    return server


# Pydantic models for API responses
class ControlResponse(BaseModel):
    success: bool
    message: str


class CanvasInfo(BaseModel):
    width: int
    height: int
    bit_depth: int
    max_value: int
    packed_bytes: int
    fetch_end: int
    key: str


def _fetch_hint(request: Request) -> Optional[str]:
    return request.headers.get("content-type") or request.headers.get("accept")


# REST API Endpoints


@router.get("/health")
async def health_check(server=Depends(get_server)):
    """Health check endpoint, including store reachability."""
    try:
        store_ok = await server.canvas_store.backend.ping()
    except StoreUnavailableError as e:
        logger.warning(f"Health check: store unavailable: {e}")
        store_ok = False
    return {
        "status": "healthy" if store_ok else "degraded",
        "store": store_ok,
        "timestamp": time.time(),
    }


@router.get("/config", response_model=CanvasInfo)
async def get_config(server=Depends(get_server)):
    """Get the canvas geometry clients need to decode fetched bytes."""
    config = server.canvas_config
    return CanvasInfo(
        width=config.width,
        height=config.height,
        bit_depth=config.bit_depth,
        max_value=config.max_value,
        packed_bytes=config.packed_bytes,
        fetch_end=config.fetch_end,
        key=config.key,
    )


@router.get("/stats")
async def get_stats(server=Depends(get_server)):
    """Get canvas store statistics."""
    return server.get_stats()


@router.post("/places/reset", response_model=ControlResponse)
async def reset_canvas(server=Depends(get_server)):
    """Clear the canvas and seed every pixel."""
    try:
        await server.canvas_store.reset()
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return ControlResponse(success=True, message="Canvas reset")


@router.post("/places/draw", response_model=ControlResponse)
async def draw_pixel(x: int, y: int, value: int, server=Depends(get_server)):
    """Set one pixel. Every violated constraint is reported at once."""
    try:
        await server.canvas_store.set_pixel(x, y, value)
    except ValidationError as e:
        raise HTTPException(
            status_code=400, detail={"message": str(e), "errors": e.errors}
        )
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return ControlResponse(success=True, message=f"Pixel ({x},{y}) set to {value}")


@router.get("/places")
async def fetch_canvas(request: Request, server=Depends(get_server)):
    """
    Fetch the packed canvas.

    An ``application/octet-stream`` Content-Type (or Accept) hint returns raw
    bytes; anything else returns base64 text.
    """
    try:
        data = await server.canvas_store.get_all()
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))

    payload = render(data, _fetch_hint(request))
    return Response(content=payload.body, media_type=payload.media_type)
