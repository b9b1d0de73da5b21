"""
Production logging utility for structured JSON logging.

Provides event-specific logging functions with mandatory fields:
- timestamp (ISO8601)
- level
- service
- event

Optional fields (included when applicable):
- blob_name
- source
- duration_ms

Usage:
    from app.utils.logging import configure_logging, log_upload_completed

    configure_logging('photo-relay', 'INFO')
    log_upload_completed(logger, blob_name='20240101120000_ab12cd34ef56.png', size=1024, ...)
"""
import logging
import sys
from typing import Optional, Dict, Any
from pythonjsonlogger import jsonlogger


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""

    _service_name = None
    _configured = False

    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO"):
        """
        Configure structured JSON logging for the application.

        Args:
            service_name: Service identifier
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return  # Already configured

        cls._service_name = service_name

        # Remove default handlers
        root_logger = logging.getLogger()
        root_logger.handlers = []

        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(level)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )

        # Console handler (for docker logs)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        # Add service name to all log records via filter
        class ServiceFilter(logging.Filter):
            def filter(self, record):
                record.service = cls._service_name
                return True

        handler.addFilter(ServiceFilter())
        cls._configured = True


def _build_log_extra(
    event: str,
    blob_name: Optional[str] = None,
    source: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """
    Build extra fields for structured logging.

    Args:
        event: Event name (mandatory)
        blob_name: Optional stored object name
        source: Optional ingestion source (multipart, base64, photo)
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields

    Returns:
        Dictionary of extra fields
    """
    extra = {
        "event": event,
        **kwargs
    }

    if blob_name:
        extra["blob_name"] = blob_name
    if source:
        extra["source"] = source
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)

    return extra


# Upload event functions

def log_upload_completed(
    logger: logging.Logger,
    blob_name: str,
    size: int,
    content_type: str,
    source: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a successful relay write.

    Args:
        logger: Logger instance
        blob_name: Stored object name (required)
        size: Stored byte count (required)
        content_type: Content type recorded on the object (required)
        source: Optional ingestion source
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="upload_completed",
        blob_name=blob_name,
        source=source,
        duration_ms=duration_ms,
        size=size,
        content_type=content_type,
        **kwargs
    )

    logger.info(f"Upload completed: {blob_name}", extra=extra)


def log_upload_rejected(
    logger: logging.Logger,
    reason: str,
    source: Optional[str] = None,
    **kwargs
):
    """Log an upload refused before any storage interaction."""
    extra = _build_log_extra(
        event="upload_rejected",
        source=source,
        reason=reason,
        **kwargs
    )

    logger.warning(f"Upload rejected: {reason}", extra=extra)


# Storage event functions

def log_container_provisioned(
    logger: logging.Logger,
    container: str,
    created: bool,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log container provisioning.

    Args:
        logger: Logger instance
        container: Container (bucket) name
        created: True if this call created it, False if it already existed
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="container_provisioned",
        duration_ms=duration_ms,
        container=container,
        created=created,
        **kwargs
    )

    logger.info(f"Container ready: {container} (created={created})", extra=extra)


def log_storage_failure(
    logger: logging.Logger,
    operation: str,
    error: str,
    blob_name: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a storage backend failure.

    Args:
        logger: Logger instance
        operation: Operation name (ensure_container, put_object, get_object) (required)
        error: Error message (required)
        blob_name: Optional object name
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="storage_failure",
        blob_name=blob_name,
        duration_ms=duration_ms,
        operation=operation,
        error=str(error),
        **kwargs
    )

    logger.error(f"Storage failure: {operation} - {error}", extra=extra)


# Access gate event functions

def log_access_denied(
    logger: logging.Logger,
    client_address: Optional[str],
    path: str,
    **kwargs
):
    """Log a request refused by the network origin gate."""
    extra = _build_log_extra(
        event="access_denied",
        client_address=client_address or "unknown",
        path=path,
        **kwargs
    )

    logger.warning(f"Access denied for {client_address or 'unknown'} on {path}", extra=extra)


def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)
