"""
Security utilities: credential redaction and rate limiting.

The caller-supplied credential is passed through to the stage collaborator
unchanged; it must never reach logs or API responses in clear text.
"""

from __future__ import annotations

import hashlib

from slowapi import Limiter
from slowapi.util import get_remote_address

# ── Rate limiter (attached to FastAPI app in main.py) ───────
limiter = Limiter(key_func=get_remote_address)


def redact_credential(credential: str | None) -> str:
    """Mask a credential for display, keeping only its last four characters."""
    if not credential:
        return ""
    if len(credential) <= 8:
        return "*" * len(credential)
    return "*" * (len(credential) - 4) + credential[-4:]


def credential_fingerprint(credential: str | None) -> str | None:
    """Short stable hash so log lines can correlate calls made with the same key."""
    if not credential:
        return None
    return hashlib.sha256(credential.encode("utf-8")).hexdigest()[:12]
