"""
Place canvas server package.

This package provides:
- Packed-bitfield addressing and pixel encoding for a shared canvas
- Canvas store orchestration over Redis or an in-memory store
- Binary/base64 rendering of fetched canvas bytes
- A FastAPI surface for reset, draw and fetch
"""

__version__ = "0.1.0"
