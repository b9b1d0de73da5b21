"""
Classified upload failures.

Every failure the upload pipeline can surface derives from UploadError.
Each class carries the HTTP status it maps to and a short opaque reason
that is safe to return to callers. The exception message itself may hold
operational detail and is only ever logged.
"""


class UploadError(Exception):
    """Base class for classified upload failures."""

    status_code = 400
    reason = "Bad request"

    def __init__(self, detail: str = None):
        super().__init__(detail or self.reason)
        self.detail = detail or self.reason


class MissingFile(UploadError):
    reason = "No file uploaded"


class MissingPayload(UploadError):
    reason = "Either 'data' or 'base64' is required"


class DecodeError(UploadError):
    reason = "Invalid base64 payload"


class EmptyPayload(UploadError):
    reason = "Empty payload"


class InvalidNamingFields(UploadError):
    reason = "'extraID' and 'ts' must be supplied together"


class PayloadTooLarge(UploadError):
    status_code = 413
    reason = "Payload too large"


class StorageUnconfigured(UploadError):
    status_code = 500
    reason = "Storage unavailable"


class StorageUnavailable(UploadError):
    status_code = 500
    reason = "Storage unavailable"


class AccessDenied(UploadError):
    status_code = 403
    reason = "Forbidden"
