"""Validation code constants for bulkplan.api.validate().

These constants prevent stringly-typed error codes and ensure
client code uses the correct validation codes.
"""

from enum import Enum


class ValidationCode(str, Enum):
    """Validation error and warning codes."""

    # Errors (blocking, fatal to the whole batch)
    INVALID_STRUCTURE = "INVALID_STRUCTURE"
    DUPLICATE_LEGACY_ID = "DUPLICATE_LEGACY_ID"
    DANGLING_REFERENCE = "DANGLING_REFERENCE"
    CYCLE_DETECTED = "CYCLE_DETECTED"

    # Warnings (non-blocking)
    UNORDERED_REFERENCE = "UNORDERED_REFERENCE"
