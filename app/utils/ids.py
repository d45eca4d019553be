# app/utils/ids.py

import uuid


def new_id(prefix: str) -> str:
    """Collision-resistant identifier with a readable type prefix, e.g. ``REQ-3f2a…``."""
    return f"{prefix}-{uuid.uuid4().hex}"


def display_id(identifier: str, length: int = 8) -> str:
    """Short form for documents and log lines: ``REQ-3f2a9c1b``."""
    prefix, sep, body = identifier.partition("-")
    if not sep or len(body) <= length:
        return identifier
    return f"{prefix}-{body[:length]}"
