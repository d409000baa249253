"""Validation module.

This module provides synchronous client-side validation of patient forms.
"""

from poco_records.validation.validator import ensure_valid, merge_errors, validate_form

__all__ = [
    "ensure_valid",
    "merge_errors",
    "validate_form",
]
