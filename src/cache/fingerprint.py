# src/cache/fingerprint.py — v1
"""Content fingerprint for a sequence of uploaded images.

Only a bounded signature of each image is hashed: the head, a slice of the
middle and the tail. Re-encodes of the same photo that differ only in
trailing metadata tend to share these bytes, so they map to the same cache
key. The trade-off favours hit rate over uniqueness.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Sequence

logger = logging.getLogger(__name__)

HEAD_BYTES = 2048
MIDDLE_BYTES = 1024
MIDDLE_MIN_SIZE = 4096
TAIL_BYTES = 1024
FALLBACK_MAX_BUFFERS = 3
SHORT_LENGTH = 16


def derive_fingerprint(buffers: Sequence[bytes]) -> str:
    """Derive the cache key for an ordered sequence of image buffers.

    The digest covers a ``count:<N>|`` marker followed by each buffer's
    signature, so a carousel never collides with a single image and
    reordering images changes the key.

    Args:
        buffers: Raw image bytes, one per uploaded image, in upload order.

    Returns:
        SHA-256 hex digest. Never raises.
    """
    try:
        digest = hashlib.sha256(f"count:{len(buffers)}|".encode("ascii"))
        for buffer in buffers:
            digest.update(_signature(buffer))
        return digest.hexdigest()
    except Exception:
        logger.warning(
            "Smart hash generation failed, using fallback", exc_info=True
        )
        return _fallback_fingerprint(buffers)


def short_fingerprint(fingerprint: str) -> str:
    """Short form for log lines. Never use it as a cache key."""
    return fingerprint[:SHORT_LENGTH]


def _signature(buffer: bytes) -> bytes:
    """Head + middle slice (large buffers) + tail (buffers past the head)."""
    view = memoryview(buffer)
    size = len(view)
    parts = [view[:HEAD_BYTES]]
    if size > MIDDLE_MIN_SIZE:
        mid = size // 2
        parts.append(view[mid : mid + MIDDLE_BYTES])
    if size > HEAD_BYTES:
        parts.append(view[max(size - TAIL_BYTES, HEAD_BYTES) :])
    return b"".join(parts)


def _fallback_fingerprint(buffers: Sequence[bytes]) -> str:
    """Hash the first few whole buffers; repr() anything that is not bytes-like."""
    try:
        head = list(buffers)[:FALLBACK_MAX_BUFFERS]
    except TypeError:
        head = [buffers]
    try:
        combined = b"".join(head)
    except TypeError:
        combined = repr(head).encode("utf-8", errors="replace")
    return hashlib.sha256(combined).hexdigest()
