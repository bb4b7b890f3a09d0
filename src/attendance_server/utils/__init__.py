"""Utility functions for the application"""

from .payload_helpers import (
    iso_now,
    pick_field,
    pick_entries,
    normalize_entries,
    present_fields,
    to_number,
)

__all__ = [
    'iso_now',
    'pick_field',
    'pick_entries',
    'normalize_entries',
    'present_fields',
    'to_number',
]
