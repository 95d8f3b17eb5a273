"""Filename-derived identifiers to URL-safe slugs."""

from __future__ import annotations

import re

_NON_SLUG_RE = re.compile(r"[^a-z0-9]")
_HYPHEN_RUN_RE = re.compile(r"-+")


def sanitize_slug(value: str) -> str:
    """Return a URL-safe slug for a filename stem.

    - Lowercases, then replaces anything outside [a-z0-9] with '-'
    - Collapses repeated hyphens and trims them from both ends
    - Falls back to "untitled" when nothing is left
    """
    slug = _NON_SLUG_RE.sub("-", value.lower())
    slug = _HYPHEN_RUN_RE.sub("-", slug).strip("-")
    return slug or "untitled"
