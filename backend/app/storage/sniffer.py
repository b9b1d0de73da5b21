"""
Content type detection from leading bytes (magic numbers).
"""

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Ordered: first matching prefix wins
MAGIC_SIGNATURES = (
    ("ffd8ff", "image/jpeg"),
    ("89504e47", "image/png"),
    ("47494638", "image/gif"),
    ("424d", "image/bmp"),
    ("49492a00", "image/tiff"),
    ("4d4d002a", "image/tiff"),
    ("25504446", "application/pdf"),
)

SNIFF_LENGTH = 8


def detect(buffer: bytes, fallback: str = DEFAULT_CONTENT_TYPE) -> str:
    """
    Guess a MIME type from the first bytes of a buffer.

    Args:
        buffer: Raw bytes (may be empty)
        fallback: Returned when no signature matches

    Returns:
        Detected MIME type, or fallback
    """
    head = bytes(buffer[:SNIFF_LENGTH]).hex()
    for prefix, content_type in MAGIC_SIGNATURES:
        if head.startswith(prefix):
            return content_type
    return fallback
