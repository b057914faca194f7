"""Shared helpers for source processors."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path

_SLUG_RE = re.compile(r"[^\w]+", re.UNICODE)


def make_source_id(path: Path) -> str:
    """Stable id for a file: slugged stem plus a short hash of the resolved path.

    >>> make_source_id(Path("pdfs/Whiskey Sour.pdf"))[:13]
    'whiskey_sour-'
    """
    slug = _SLUG_RE.sub("_", path.stem.lower()).strip("_") or "document"
    digest = hashlib.sha256(str(path.resolve()).encode("utf-8")).hexdigest()[:8]
    return f"{slug}-{digest}"
