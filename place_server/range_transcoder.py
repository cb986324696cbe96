"""
Pure Range Transcoding Logic

Renders a raw packed byte range for transport. Callers asking for
``application/octet-stream`` get the bytes verbatim; everyone else gets
base64 text.
"""

import base64
from enum import Enum
from typing import NamedTuple, Optional, Union

OCTET_STREAM = "application/octet-stream"
TEXT_PLAIN = "text/plain"


class Representation(Enum):
    """Wire encoding of a fetched byte range."""

    BINARY = "binary"
    BASE64 = "base64"

    def __str__(self) -> str:
        return self.value


class RenderedPayload(NamedTuple):
    body: Union[bytes, str]
    media_type: str
    representation: Representation


def select_representation(content_type: Optional[str]) -> Representation:
    """Pick the representation for a content-type hint; unknown hints mean base64."""
    if not content_type:
        return Representation.BASE64
    # Ignore parameters such as "; charset=..." and letter case
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type == OCTET_STREAM:
        return Representation.BINARY
    return Representation.BASE64


def render(data: bytes, content_type: Optional[str] = None) -> RenderedPayload:
    """
    Render packed bytes in the representation selected by ``content_type``.

    Args:
        data: Raw packed byte range
        content_type: Caller-supplied hint, may be None

    Returns:
        RenderedPayload: bytes for BINARY, ASCII base64 text for BASE64
    """
    representation = select_representation(content_type)
    if representation is Representation.BINARY:
        return RenderedPayload(bytes(data), OCTET_STREAM, representation)
    encoded = base64.b64encode(bytes(data)).decode("ascii")
    return RenderedPayload(encoded, TEXT_PLAIN, representation)
