"""Request body builders for the form examples.

Multipart bodies are assembled by hand (rather than through httpx's
``files=``) so individual parts can carry a Content-Encoding and so
multipart/mixed and nested bodies can be produced.
"""

from __future__ import annotations

import gzip
import uuid
import zlib
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlencode

import brotli

# Server-side form limits the examples run with. Suites use these to build
# payloads just over a limit.
FORM_LIMITS = {
    "max_request_body_bytes": 100 * 1024 * 1024,
    "max_parts": 1024,
    "max_part_body_bytes": 20 * 1024 * 1024,
    "max_decompressed_bytes_per_part": 20 * 1024 * 1024,
    "max_header_bytes_per_part": 16 * 1024,
    "max_field_value_bytes": 64 * 1024,
    # a multipart/mixed part inside form-data is depth 1
    "max_nesting_depth": 1,
}

ENCODINGS = ("identity", "gzip", "deflate", "br")

# "deflate" parts are raw RFC 1951 streams, no zlib header.
_RAW_DEFLATE = -zlib.MAX_WBITS


@dataclass
class FormPart:
    """One part of a multipart body."""

    name: Optional[str]
    data: Union[bytes, str]
    filename: Optional[str] = None
    content_type: Optional[str] = None
    content_encoding: str = "identity"

    @property
    def raw(self) -> bytes:
        if isinstance(self.data, str):
            return self.data.encode("utf-8")
        return self.data


def _normalize_encoding(encoding: Optional[str]) -> str:
    enc = (encoding or "identity").strip().lower()
    if enc not in ENCODINGS:
        raise ValueError(f"unsupported part encoding: {encoding!r}")
    return enc


def encode_part_body(data: bytes, encoding: Optional[str]) -> bytes:
    """Compress a part body for the given Content-Encoding."""
    enc = _normalize_encoding(encoding)
    if enc == "gzip":
        return gzip.compress(data)
    if enc == "deflate":
        compressor = zlib.compressobj(wbits=_RAW_DEFLATE)
        return compressor.compress(data) + compressor.flush()
    if enc == "br":
        return brotli.compress(data)
    return data


def decode_part_body(data: bytes, encoding: Optional[str]) -> bytes:
    """Undo encode_part_body."""
    enc = _normalize_encoding(encoding)
    if enc == "gzip":
        return gzip.decompress(data)
    if enc == "deflate":
        return zlib.decompress(data, _RAW_DEFLATE)
    if enc == "br":
        return brotli.decompress(data)
    return data


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _part_headers(part: FormPart, subtype: str) -> list[str]:
    headers = []
    if subtype == "form-data" or part.name is not None:
        if part.name is None:
            raise ValueError("form-data parts need a name")
        disposition = f'form-data; name="{_quote(part.name)}"'
        if part.filename is not None:
            disposition += f'; filename="{_quote(part.filename)}"'
        headers.append(f"Content-Disposition: {disposition}")
    elif part.filename is not None:
        headers.append(f'Content-Disposition: attachment; filename="{_quote(part.filename)}"')

    content_type = part.content_type
    if content_type is None and part.filename is not None:
        content_type = "application/octet-stream"
    if content_type:
        headers.append(f"Content-Type: {content_type}")

    enc = _normalize_encoding(part.content_encoding)
    if enc != "identity":
        headers.append(f"Content-Encoding: {enc}")
    return headers


def build_multipart(
    parts: list[FormPart],
    boundary: Optional[str] = None,
    subtype: str = "form-data",
) -> tuple[bytes, str]:
    """Assemble a multipart body.

    Returns (body, content_type). A part's data may itself be a multipart
    body built by this function (pass its content type as the part's
    content_type) to produce nested multipart.
    """
    boundary = boundary or f"krprobe-{uuid.uuid4().hex}"
    if len(boundary) > 70:
        raise ValueError("multipart boundary longer than 70 characters")
    delimiter = f"--{boundary}".encode("ascii")

    chunks: list[bytes] = []
    for part in parts:
        chunks.append(delimiter + b"\r\n")
        for header in _part_headers(part, subtype):
            chunks.append(header.encode("utf-8") + b"\r\n")
        chunks.append(b"\r\n")
        chunks.append(encode_part_body(part.raw, part.content_encoding))
        chunks.append(b"\r\n")
    chunks.append(delimiter + b"--\r\n")
    return b"".join(chunks), f"multipart/{subtype}; boundary={boundary}"


def build_urlencoded(fields: Union[dict[str, str], list[tuple[str, str]]]) -> tuple[bytes, str]:
    """Return (body, content_type) for an url-encoded form."""
    body = urlencode(fields).encode("ascii")
    return body, "application/x-www-form-urlencoded"
