"""Short URL-safe identifiers for rooms and connections."""

from __future__ import annotations

import secrets
import string

ID_ALPHABET = string.ascii_letters + string.digits + "_-"


def new_id(length: int) -> str:
    """Return a random token drawn from a 64-symbol URL-safe alphabet."""
    if length < 1:
        raise ValueError("length must be >= 1")
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))
