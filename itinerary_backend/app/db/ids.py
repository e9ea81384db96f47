"""Identifier generation for new rows and draft items."""

import uuid


def generate_id() -> str:
    """Return a new globally unique identifier string."""
    return str(uuid.uuid4())
