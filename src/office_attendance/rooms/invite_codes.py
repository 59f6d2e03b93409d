from __future__ import annotations

import secrets

from ..core.constants import INVITE_CODE_ALPHABET, INVITE_CODE_LENGTH


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    """Short uppercase alphanumeric token. Collisions are unlikely and not checked."""
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(int(length)))


def normalize_invite_code(code: str) -> str:
    return (code or "").strip().upper()
