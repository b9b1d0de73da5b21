"""
Upload endpoints.

Bytes are received by the API and relayed to object storage in one write:
1. POST /upload              - multipart, field "photo" (legacy photo endpoint)
2. POST /api/upload          - multipart, field "file"
3. POST /api/uploadBase64    - JSON with base64 or data-URI payload

Naming:
- By default the object name is generated (timestamp + random suffix)
- Multipart requests carrying both "extraID" and "ts" are stored as
  "<extraID>_<ts>.<png|jpg>". Repeating the pair overwrites the earlier
  object (last write wins).

Security:
- All endpoints sit behind the network origin gate (private networks only)
- Request bodies are size-limited before they are read
- Error responses carry a short reason only; detail goes to the logs
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from app.config import settings
from app.exceptions import InvalidNamingFields
from app.schemas.upload import Base64UploadRequest, ErrorResponse, UploadResponse
from app.services.ingestion import UploadPayload, from_base64_json, from_multipart
from app.storage.relay import BlobRelay, get_blob_relay
from app.utils.metrics import uploads_total, upload_size_bytes

router = APIRouter()
legacy_router = APIRouter()

# Metric/log label per endpoint
SOURCE_BY_PATH = {
    "/upload": "photo",
    "/api/upload": "multipart",
    "/api/uploadBase64": "base64",
}

# Multipart fields that must carry a file part
FILE_FIELDS = {"photo", "file"}

# Error envelope documented on every upload route
ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

# Photos sniffed as nothing known are still stored as JPEG
PHOTO_FALLBACK_CONTENT_TYPE = "image/jpeg"


async def _store(
    relay: BlobRelay,
    payload: UploadPayload,
    source: str,
    extra_id: Optional[str] = None,
    ts: Optional[str] = None,
) -> UploadResponse:
    """Relay a normalized payload and build the response."""
    if extra_id is not None:
        descriptor = await relay.upload_as(
            payload.buffer,
            payload.content_type,
            extra_id=extra_id,
            ts=ts,
            source=source
        )
    else:
        descriptor = await relay.upload(
            payload.buffer,
            payload.content_type,
            extension_hint=payload.extension_hint,
            source=source
        )

    uploads_total.labels(source=source, status="success").inc()
    upload_size_bytes.labels(source=source).observe(descriptor.size)

    return UploadResponse(
        blob_name=descriptor.name,
        url=descriptor.url,
        content_type=descriptor.content_type,
        size=descriptor.size
    )


def _naming_fields(extra_id: Optional[str], ts: Optional[str]):
    """Return (extra_id, ts) for direct naming, or (None, None)."""
    extra_id = extra_id or None
    ts = ts or None
    if (extra_id is None) != (ts is None):
        raise InvalidNamingFields("only one of extraID/ts was supplied")
    return extra_id, ts


@legacy_router.post("/upload", response_model=UploadResponse, responses=ERROR_RESPONSES)
async def upload_photo(
    photo: Optional[UploadFile] = File(None),
    extra_id: Optional[str] = Form(None, alias="extraID"),
    ts: Optional[str] = Form(None),
    relay: BlobRelay = Depends(get_blob_relay)
):
    """
    Upload a photo from the multipart field "photo".

    With "extraID" and "ts" the object is stored as
    "<extraID>_<ts>.png" for PNGs and "<extraID>_<ts>.jpg" otherwise.

    Returns 400 if the file is missing, 500 if storage fails.
    """
    extra_id, ts = _naming_fields(extra_id, ts)
    payload = await from_multipart(
        photo,
        settings.max_upload_bytes,
        sniff_fallback=PHOTO_FALLBACK_CONTENT_TYPE
    )
    return await _store(relay, payload, source="photo", extra_id=extra_id, ts=ts)


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES
)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    extra_id: Optional[str] = Form(None, alias="extraID"),
    ts: Optional[str] = Form(None),
    relay: BlobRelay = Depends(get_blob_relay)
):
    """
    Upload a file from the multipart field "file".

    Content type comes from the declared part type, or from the file's
    magic number when the declared type is missing or generic.

    Returns 201 with the stored object's identity.
    """
    extra_id, ts = _naming_fields(extra_id, ts)
    payload = await from_multipart(file, settings.max_upload_bytes)
    return await _store(relay, payload, source="multipart", extra_id=extra_id, ts=ts)


@router.post(
    "/uploadBase64",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES
)
async def upload_base64(
    request: Base64UploadRequest,
    relay: BlobRelay = Depends(get_blob_relay)
):
    """
    Upload a base64 payload from a JSON body.

    Accepts "data" as a data URI (data:<mime>;base64,<payload>) or raw
    base64 in "base64". An optional "filename" supplies the extension.

    Returns 400 if neither field is present or decoding fails.
    """
    payload = from_base64_json(request, settings.max_upload_bytes)
    return await _store(relay, payload, source="base64")
