from __future__ import annotations

import hashlib
import hmac
import os
from typing import Optional

_ALGO = "pbkdf2_sha256"
_ITERATIONS = 120_000


def hash_password(raw: str) -> str:
    salt = os.urandom(16).hex()
    digest = hashlib.pbkdf2_hmac("sha256", raw.encode("utf-8"), bytes.fromhex(salt), _ITERATIONS).hex()
    return f"{_ALGO}${_ITERATIONS}${salt}${digest}"


def verify_password(stored: Optional[str], supplied: Optional[str]) -> bool:
    """No stored password means the session is public: anything matches."""
    if not stored:
        return True
    try:
        algo, iterations, salt, digest = stored.split("$", 3)
    except ValueError:
        return False
    if algo != _ALGO:
        return False
    candidate = hashlib.pbkdf2_hmac(
        "sha256", (supplied or "").encode("utf-8"), bytes.fromhex(salt), int(iterations)
    ).hex()
    return hmac.compare_digest(candidate, digest)
