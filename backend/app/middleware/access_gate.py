"""
Network origin gate.

Rejects callers outside private networks with an empty 403 before any
upload logic (or body parsing) runs. The allow/deny decision is delegated
to an OriginClassifier so a stricter mechanism (mutual TLS, signed
network metadata) can replace the address check without touching the
upload pipeline.
"""
import ipaddress
import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.exceptions import AccessDenied
from app.utils.logging import log_access_denied
from app.utils.metrics import access_denied_total

logger = logging.getLogger(__name__)

PRIVATE_NETWORKS = tuple(
    ipaddress.ip_network(network)
    for network in (
        "127.0.0.0/8",
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "::1/128",
        "fc00::/7",
    )
)

# Paths that require a private origin
PROTECTED_PREFIXES = ("/upload", "/api/upload", "/cv", "/di")


class OriginClassifier(ABC):
    """Decides whether a request's origin may reach the upload endpoints."""

    @abstractmethod
    def is_allowed(self, request: Request) -> bool:
        pass

    def check(self, request: Request):
        """Raise AccessDenied unless the origin is allowed."""
        if not self.is_allowed(request):
            raise AccessDenied(f"origin not allowed: {self.describe(request)}")

    def describe(self, request: Request) -> Optional[str]:
        """Caller identity for logs."""
        return request.client.host if request.client else None


class PrivateNetworkClassifier(OriginClassifier):
    """
    Admits loopback, RFC1918 and IPv6 unique-local addresses.

    With trust_forwarded_for the first X-Forwarded-For hop is used as the
    caller address. That header is set by the nearest proxy and can be
    forged when the service is reachable directly.
    """

    def __init__(self, trust_forwarded_for: bool = True):
        self.trust_forwarded_for = trust_forwarded_for

    def client_address(self, request: Request) -> Optional[str]:
        if self.trust_forwarded_for:
            forwarded = request.headers.get("x-forwarded-for")
            if forwarded:
                return forwarded.split(",")[0].strip()
        return request.client.host if request.client else None

    def describe(self, request: Request) -> Optional[str]:
        return self.client_address(request)

    def is_allowed(self, request: Request) -> bool:
        return is_private_address(self.client_address(request))


def is_private_address(address: Optional[str]) -> bool:
    """True if address parses and lies in a private or loopback range."""
    if not address:
        return False
    try:
        ip = ipaddress.ip_address(address.split("%")[0])
    except ValueError:
        return False

    if ip.version == 6 and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped

    return any(ip in network for network in PRIVATE_NETWORKS)


class AccessGateMiddleware(BaseHTTPMiddleware):
    """Middleware applying an OriginClassifier to the protected paths."""

    def __init__(
        self,
        app,
        classifier: OriginClassifier,
        protected_prefixes: Iterable[str] = PROTECTED_PREFIXES
    ):
        super().__init__(app)
        self.classifier = classifier
        self.protected_prefixes = tuple(protected_prefixes)

    async def dispatch(self, request: Request, call_next):
        """Reject non-private origins on protected paths."""
        path = request.url.path
        if not path.startswith(self.protected_prefixes):
            return await call_next(request)

        try:
            self.classifier.check(request)
        except AccessDenied:
            access_denied_total.inc()
            log_access_denied(logger, client_address=self.classifier.describe(request), path=path)
            return Response(status_code=AccessDenied.status_code)

        return await call_next(request)
