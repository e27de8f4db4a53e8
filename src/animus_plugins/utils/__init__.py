"""Utility helpers."""

from .validation import is_safe_path_segment, sanitize_log_message

__all__ = ["is_safe_path_segment", "sanitize_log_message"]
