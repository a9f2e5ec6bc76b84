"""Utility modules for multi-ai."""

from .text import levenshtein_distance, normalize_prompt, similarity, strip_bullet_markers

__all__ = [
    "levenshtein_distance",
    "normalize_prompt",
    "similarity",
    "strip_bullet_markers",
]
