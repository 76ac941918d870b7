"""Utility functions and helpers."""

from authsession.utils.validators import validate_uuid

__all__ = [
    "validate_uuid",
]
