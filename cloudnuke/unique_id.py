"""Short random identifiers for naming resources."""

from __future__ import annotations

import random

BASE_62_CHARS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
UNIQUE_ID_LENGTH = 6


def unique_id() -> str:
    """Return a random base-62 string of six characters."""
    return "".join(random.choices(BASE_62_CHARS, k=UNIQUE_ID_LENGTH))