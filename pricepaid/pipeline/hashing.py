"""Content fingerprint for downloaded datasets."""

from __future__ import annotations

import hashlib


def dataset_hash(data: bytes) -> str:
    """Upper-case hex MD5 of the whole payload.

    Used only to tell monthly snapshots apart, never as a security primitive.
    """
    return hashlib.md5(data, usedforsecurity=False).hexdigest().upper()
