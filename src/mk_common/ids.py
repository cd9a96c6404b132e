"""Identifier helpers for gateway documents and storage uploads."""

import secrets
import string
import time

_AUTO_ID_ALPHABET = string.ascii_letters + string.digits
_AUTO_ID_LENGTH = 20


def new_document_id() -> str:
    """Random 20-character alphanumeric id, the shape document stores assign on create."""
    return "".join(secrets.choice(_AUTO_ID_ALPHABET) for _ in range(_AUTO_ID_LENGTH))


def upload_token() -> str:
    """Uniqueness token for storage paths: millisecond timestamp plus a random suffix.

    Two dispatch attempts on the same order inside the same millisecond still
    get distinct paths.
    """
    return f"{int(time.time() * 1000)}{secrets.token_hex(3)}"
