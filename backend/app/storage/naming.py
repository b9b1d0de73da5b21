"""
Object name generation.

Generated names look like ``20240131235959_0a1b2c3d4e5f.png``: a compact UTC
timestamp followed by 6 random bytes in hex. The timestamp only has second
granularity, so the random suffix is what keeps concurrent uploads apart.

Direct names (``<extraID>_<ts>.<ext>``) are chosen by the caller and are
last-write-wins: uploading twice with the same pair replaces the object.
"""
import secrets
from datetime import datetime, timezone
from typing import Optional

RANDOM_SUFFIX_BYTES = 6
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def normalize_extension(extension_hint: Optional[str]) -> str:
    """Strip surrounding whitespace and leading dots; lowercase."""
    if not extension_hint:
        return ""
    return extension_hint.strip().lstrip(".").lower()


def generate(extension_hint: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """
    Generate a collision-resistant object name.

    Args:
        extension_hint: Optional extension, with or without leading dot
        now: Override for the current time (tests)

    Returns:
        Object name string
    """
    now = now or datetime.now(timezone.utc)
    name = f"{now.strftime(TIMESTAMP_FORMAT)}_{secrets.token_hex(RANDOM_SUFFIX_BYTES)}"

    extension = normalize_extension(extension_hint)
    if extension:
        name = f"{name}.{extension}"
    return name


def direct_name(extra_id: str, ts: str, content_type: Optional[str]) -> str:
    """Build ``<extra_id>_<ts>.<png|jpg>`` from caller-supplied identity."""
    extension = "png" if content_type == "image/png" else "jpg"
    return f"{extra_id}_{ts}.{extension}"
