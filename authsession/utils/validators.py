"""Input validation utilities."""

import uuid
from typing import Optional


def validate_uuid(value: Optional[str]) -> Optional[uuid.UUID]:
    """
    Validate and parse a UUID string.

    Args:
        value: String to validate as UUID

    Returns:
        UUID object if valid, None otherwise
    """
    try:
        return uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        return None
