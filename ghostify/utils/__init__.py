"""
Utility helpers used by the migration tool.

This subpackage exposes convenience functions for structured logging,
slug and id generation, tag normalisation and redirect map generation.
"""

from .errors import ERRORS, report_error, report_ok
from .slugs import slugify

__all__ = ["ERRORS", "report_error", "report_ok", "slugify"]
