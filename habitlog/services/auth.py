"""Password lookup against the fixed credential table from settings."""
from __future__ import annotations

import hmac
from typing import Mapping


def lookup_user(credentials: Mapping[str, str], username: str, password: str) -> bool:
    expected = credentials.get(username)
    if expected is None:
        return False
    return hmac.compare_digest(expected.encode(), password.encode())
