"""
Placeholder image/document analysis.

No computer-vision or document-intelligence processing happens here. Each
call runs as its own asyncio task that only waits out a fixed latency and
returns an empty result, so callers can exercise the round trip.
"""
import asyncio
import logging

from app.config import settings

logger = logging.getLogger(__name__)


class AnalysisService:
    """Stubbed analysis with simulated latency."""

    def __init__(self, cv_latency_ms: int = None, di_latency_ms: int = None):
        self.cv_latency = (cv_latency_ms if cv_latency_ms is not None else settings.cv_stub_latency_ms) / 1000
        self.di_latency = (di_latency_ms if di_latency_ms is not None else settings.di_stub_latency_ms) / 1000

    @staticmethod
    async def _simulate(latency: float, result: dict) -> dict:
        await asyncio.sleep(latency)
        return result

    async def analyze_image(self) -> dict:
        """Return empty computer-vision labels."""
        task = asyncio.create_task(self._simulate(self.cv_latency, {"labels": []}))
        logger.debug("CV stub scheduled")
        return await task

    async def analyze_document(self) -> dict:
        """Return empty document-intelligence fields."""
        task = asyncio.create_task(self._simulate(self.di_latency, {"fields": {}}))
        logger.debug("DI stub scheduled")
        return await task
