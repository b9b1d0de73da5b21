"""
Ingestion adapters.

Normalize the two accepted request shapes into an UploadPayload
(buffer, content type, extension hint) for the blob relay:
- multipart/form-data with a single file field
- JSON with an inline base64 payload (optionally a data URI)

Both apply the configured size limit. Oversized requests are normally
already refused by the body size middleware; the checks here apply the
exact limit to the decoded bytes.
"""
import base64
import binascii
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

from fastapi import UploadFile

from app.exceptions import DecodeError, MissingFile, MissingPayload, PayloadTooLarge
from app.schemas.upload import Base64UploadRequest
from app.storage.sniffer import DEFAULT_CONTENT_TYPE, detect


# Declared types that say nothing about the content
GENERIC_CONTENT_TYPES = {"", DEFAULT_CONTENT_TYPE}

# data:<mime>[;param=value]*;base64,<payload>
DATA_URI_PATTERN = re.compile(
    r"^data:(?P<mime>[^;,]+)(?:;[^;,=]+=[^;,]*)*;base64,(?P<payload>.*)$",
    re.DOTALL | re.IGNORECASE
)
WHITESPACE_PATTERN = re.compile(r"\s+")


@dataclass(frozen=True)
class UploadPayload:
    """Normalized upload ready for the relay."""
    buffer: bytes
    content_type: str
    extension_hint: Optional[str] = None


def extension_from_filename(filename: Optional[str]) -> Optional[str]:
    """Return the filename suffix (e.g. ".png"), or None."""
    if not filename:
        return None
    suffix = PurePosixPath(filename.replace("\\", "/")).suffix
    return suffix or None


def resolve_content_type(
    declared: Optional[str],
    buffer: bytes,
    fallback: str = DEFAULT_CONTENT_TYPE
) -> str:
    """
    Pick the content type for a buffer.

    A specific declared type wins. Missing or generic declarations are
    replaced by sniffing the buffer's magic number.
    """
    declared = (declared or "").split(";")[0].strip().lower()
    if declared not in GENERIC_CONTENT_TYPES:
        return declared
    return detect(buffer, fallback)


async def from_multipart(
    upload: Optional[UploadFile],
    max_bytes: int,
    sniff_fallback: str = DEFAULT_CONTENT_TYPE
) -> UploadPayload:
    """
    Extract the payload from a multipart file field.

    Args:
        upload: The file field, or None if absent
        max_bytes: Maximum accepted file size
        sniff_fallback: Content type used when sniffing finds nothing

    Raises:
        MissingFile: field absent or file empty
        PayloadTooLarge: file larger than max_bytes
    """
    if upload is None:
        raise MissingFile("multipart request has no file field")

    if upload.size is not None and upload.size > max_bytes:
        raise PayloadTooLarge(f"file is {upload.size} bytes, limit {max_bytes}")

    buffer = await upload.read(max_bytes + 1)
    if not buffer:
        raise MissingFile("uploaded file is empty")
    if len(buffer) > max_bytes:
        raise PayloadTooLarge(f"file exceeds limit of {max_bytes} bytes")

    return UploadPayload(
        buffer=buffer,
        content_type=resolve_content_type(upload.content_type, buffer, sniff_fallback),
        extension_hint=extension_from_filename(upload.filename),
    )


def from_base64_json(request: Base64UploadRequest, max_bytes: int) -> UploadPayload:
    """
    Extract the payload from a base64 JSON body.

    ``data`` is tried as a data URI first; its MIME type is then taken as
    the content type. Otherwise the raw payload (``base64``, or ``data``
    when it is not a data URI) is decoded and sniffed.

    Raises:
        MissingPayload: neither data nor base64 present
        DecodeError: payload is not valid base64 or decodes to nothing
        PayloadTooLarge: decoded payload larger than max_bytes
    """
    if request.data is None and request.base64_data is None:
        raise MissingPayload("body has neither 'data' nor 'base64'")

    declared = None
    encoded = None
    if request.data is not None:
        match = DATA_URI_PATTERN.match(request.data.strip())
        if match:
            declared = match.group("mime").strip().lower()
            encoded = match.group("payload")
    if encoded is None:
        encoded = request.base64_data if request.base64_data is not None else request.data

    encoded = WHITESPACE_PATTERN.sub("", encoded)

    # Reject on the encoded length before allocating the decoded buffer
    if (len(encoded) // 4) * 3 - encoded[-2:].count("=") > max_bytes:
        raise PayloadTooLarge(f"decoded payload would exceed {max_bytes} bytes")

    try:
        buffer = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"base64 decoding failed: {e}") from e

    if not buffer:
        raise DecodeError("base64 payload decoded to zero bytes")

    return UploadPayload(
        buffer=buffer,
        content_type=declared or detect(buffer, DEFAULT_CONTENT_TYPE),
        extension_hint=extension_from_filename(request.filename),
    )
