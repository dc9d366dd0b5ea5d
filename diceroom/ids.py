"""Identifier helpers for room codes, roll events and connections."""
from __future__ import annotations

import random
import uuid

from .constants import CODE_ALPHABET, CODE_LENGTH


def generate_code() -> str:
    """Return a random upper-case room code such as ``"AB12"``."""
    return "".join(random.choices(CODE_ALPHABET, k=CODE_LENGTH))


def generate_event_id() -> str:
    return uuid.uuid4().hex


def generate_connection_id() -> str:
    return str(uuid.uuid4())


def normalize_code(code: object) -> str:
    """Room codes are case-insensitive; lookups always use upper case."""
    if not isinstance(code, str):
        return ""
    return code.strip().upper()


__all__ = [
    "generate_code",
    "generate_event_id",
    "generate_connection_id",
    "normalize_code",
]
