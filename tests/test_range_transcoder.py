"""Tests for binary/base64 rendering of fetched byte ranges."""

import base64

import pytest

from place_server.range_transcoder import (
    OCTET_STREAM,
    Representation,
    render,
    select_representation,
)

DATA = bytes([0x00, 0x9F, 0xFF, 0x10, 0x80])


def test_octet_stream_passes_bytes_through():
    payload = render(DATA, "application/octet-stream")
    assert payload.body == DATA
    assert payload.media_type == OCTET_STREAM
    assert payload.representation is Representation.BINARY


@pytest.mark.parametrize(
    "hint",
    [None, "", "text/plain", "application/json", "*/*", "application/octet"],
)
def test_other_hints_render_base64(hint):
    payload = render(DATA, hint)
    assert payload.body == base64.b64encode(DATA).decode("ascii")
    assert payload.representation is Representation.BASE64


def test_hint_parameters_and_case_are_ignored():
    assert (
        select_representation("Application/Octet-Stream; charset=binary")
        is Representation.BINARY
    )


def test_empty_range():
    assert render(b"", OCTET_STREAM).body == b""
    assert render(b"").body == ""
