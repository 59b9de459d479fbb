"""Whitespace-insensitive content fingerprints.

Every whitespace run is removed before hashing, so re-indented or
re-wrapped copies of the same contract share one identity.
"""

from __future__ import annotations

import hashlib
import re
from collections.abc import Iterable

_WHITESPACE = re.compile(r"\s+")


def simple_hash(content: str) -> str:
    """md5 hex digest of ``content`` with all whitespace removed."""
    stripped = _WHITESPACE.sub("", content)
    return hashlib.md5(stripped.encode("utf-8")).hexdigest()


def multi_hash(contents: Iterable[str]) -> str:
    """Order-independent fingerprint of several blobs.

    Each blob is hashed on its own; the sorted digests are concatenated and
    hashed again.
    """
    joined = "".join(sorted(simple_hash(content) for content in contents))
    return simple_hash(joined)
