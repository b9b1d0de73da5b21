"""
Tests for service layer: ingestion adapters and analysis stubs.
"""
import base64
import io
import pytest
from starlette.datastructures import Headers, UploadFile

from app.exceptions import DecodeError, MissingFile, MissingPayload, PayloadTooLarge
from app.schemas.upload import Base64UploadRequest
from app.services.analysis_service import AnalysisService
from app.services.ingestion import (
    extension_from_filename,
    from_base64_json,
    from_multipart,
    resolve_content_type,
)

from conftest import JPEG_BYTES, PDF_BYTES, PNG_BYTES

MAX_BYTES = 1024


def make_upload(data: bytes, filename: str = "photo.png", content_type: str = None) -> UploadFile:
    headers = Headers({"content-type": content_type}) if content_type else Headers({})
    return UploadFile(file=io.BytesIO(data), filename=filename, headers=headers, size=len(data))


class TestHelpers:
    """Tests for ingestion helpers."""

    def test_extension_from_filename(self):
        """Test the suffix is used as extension hint."""
        assert extension_from_filename("holiday.JPG") == ".JPG"
        assert extension_from_filename("C:\\scans\\invoice.pdf") == ".pdf"
        assert extension_from_filename("archive.tar.gz") == ".gz"
        assert extension_from_filename("README") is None
        assert extension_from_filename(None) is None

    def test_resolve_declared_wins(self):
        """Test a specific declared type is kept."""
        assert resolve_content_type("image/webp", PNG_BYTES) == "image/webp"

    def test_resolve_generic_is_sniffed(self):
        """Test missing or generic declarations are sniffed."""
        assert resolve_content_type(None, PNG_BYTES) == "image/png"
        assert resolve_content_type("application/octet-stream", JPEG_BYTES) == "image/jpeg"

    def test_resolve_strips_parameters(self):
        """Test MIME parameters are dropped."""
        assert resolve_content_type("Image/PNG; charset=binary", PNG_BYTES) == "image/png"


class TestMultipartAdapter:
    """Tests for from_multipart."""

    @pytest.mark.asyncio
    async def test_declared_content_type(self):
        """Test declared type and filename suffix are carried over."""
        payload = await from_multipart(make_upload(PNG_BYTES, "shot.png", "image/png"), MAX_BYTES)

        assert payload.buffer == PNG_BYTES
        assert payload.content_type == "image/png"
        assert payload.extension_hint == ".png"

    @pytest.mark.asyncio
    async def test_sniffed_content_type(self):
        """Test content is sniffed when nothing specific is declared."""
        payload = await from_multipart(
            make_upload(PDF_BYTES, "scan", "application/octet-stream"),
            MAX_BYTES
        )

        assert payload.content_type == "application/pdf"
        assert payload.extension_hint is None

    @pytest.mark.asyncio
    async def test_sniff_fallback(self):
        """Test the caller's fallback is used for unknown content."""
        payload = await from_multipart(
            make_upload(b"not an image", "x.bin"),
            MAX_BYTES,
            sniff_fallback="image/jpeg"
        )
        assert payload.content_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_missing_file(self):
        """Test absent field raises MissingFile."""
        with pytest.raises(MissingFile):
            await from_multipart(None, MAX_BYTES)

    @pytest.mark.asyncio
    async def test_empty_file(self):
        """Test empty file raises MissingFile."""
        with pytest.raises(MissingFile):
            await from_multipart(make_upload(b""), MAX_BYTES)

    @pytest.mark.asyncio
    async def test_too_large(self):
        """Test files above the limit are refused."""
        with pytest.raises(PayloadTooLarge):
            await from_multipart(make_upload(b"\x00" * (MAX_BYTES + 1)), MAX_BYTES)

    @pytest.mark.asyncio
    async def test_exactly_at_limit(self):
        """Test a file of exactly the limit is accepted."""
        payload = await from_multipart(make_upload(b"\x01" * MAX_BYTES), MAX_BYTES)
        assert len(payload.buffer) == MAX_BYTES


class TestBase64Adapter:
    """Tests for from_base64_json."""

    def test_data_uri(self):
        """Test the data URI MIME type is used."""
        encoded = base64.b64encode(PNG_BYTES).decode()
        request = Base64UploadRequest(data=f"data:image/png;base64,{encoded}", filename="a.png")

        payload = from_base64_json(request, MAX_BYTES)

        assert payload.buffer == PNG_BYTES
        assert payload.content_type == "image/png"
        assert payload.extension_hint == ".png"

    def test_data_uri_type_trusted_over_bytes(self):
        """Test the declared data URI type is not re-sniffed."""
        encoded = base64.b64encode(PNG_BYTES).decode()
        request = Base64UploadRequest(data=f"data:image/x-custom;base64,{encoded}")

        assert from_base64_json(request, MAX_BYTES).content_type == "image/x-custom"

    def test_data_uri_parameters(self):
        """Test parameters between the MIME type and ;base64 are dropped."""
        encoded = base64.b64encode(PNG_BYTES).decode()
        request = Base64UploadRequest(data=f"data:image/png;charset=binary;name=a.png;base64,{encoded}")

        payload = from_base64_json(request, MAX_BYTES)

        assert payload.buffer == PNG_BYTES
        assert payload.content_type == "image/png"

    def test_raw_base64_is_sniffed(self):
        """Test raw payloads are sniffed after decoding."""
        request = Base64UploadRequest(base64=base64.b64encode(PDF_BYTES).decode())

        payload = from_base64_json(request, MAX_BYTES)

        assert payload.buffer == PDF_BYTES
        assert payload.content_type == "application/pdf"
        assert payload.extension_hint is None

    def test_raw_base64_unknown_content(self):
        """Test unknown raw payloads stay octet-stream."""
        request = Base64UploadRequest(base64=base64.b64encode(b"plain bytes").decode())

        assert from_base64_json(request, MAX_BYTES).content_type == "application/octet-stream"

    def test_data_without_uri_prefix(self):
        """Test a bare base64 string in data is decoded."""
        request = Base64UploadRequest(data=base64.b64encode(JPEG_BYTES).decode())

        assert from_base64_json(request, MAX_BYTES).content_type == "image/jpeg"

    def test_whitespace_tolerated(self):
        """Test line-wrapped base64 decodes."""
        encoded = base64.encodebytes(PNG_BYTES).decode()
        request = Base64UploadRequest(base64=encoded)

        assert from_base64_json(request, MAX_BYTES).buffer == PNG_BYTES

    def test_missing_payload(self):
        """Test neither field raises MissingPayload."""
        with pytest.raises(MissingPayload):
            from_base64_json(Base64UploadRequest(filename="a.png"), MAX_BYTES)

    def test_invalid_base64(self):
        """Test malformed input raises DecodeError."""
        with pytest.raises(DecodeError):
            from_base64_json(Base64UploadRequest(base64="***not base64***"), MAX_BYTES)

    def test_empty_decoded(self):
        """Test an empty payload raises DecodeError."""
        with pytest.raises(DecodeError):
            from_base64_json(Base64UploadRequest(data="data:image/png;base64,"), MAX_BYTES)

    def test_too_large(self):
        """Test oversized payloads are refused before decoding."""
        encoded = base64.b64encode(b"\x00" * (MAX_BYTES + 1)).decode()

        with pytest.raises(PayloadTooLarge):
            from_base64_json(Base64UploadRequest(base64=encoded), MAX_BYTES)


class TestAnalysisService:
    """Tests for the analysis stubs."""

    @pytest.mark.asyncio
    async def test_image_stub(self):
        """Test the CV stub returns empty labels."""
        service = AnalysisService(cv_latency_ms=0, di_latency_ms=0)
        assert await service.analyze_image() == {"labels": []}

    @pytest.mark.asyncio
    async def test_document_stub(self):
        """Test the DI stub returns empty fields."""
        service = AnalysisService(cv_latency_ms=0, di_latency_ms=0)
        assert await service.analyze_document() == {"fields": {}}
