"""Cross-document references: backlink detection and legacy link repair.

Posts may be linked by their sanitized slug or by the filename they were
written under, at any relative depth and with or without a ``.md`` suffix.
Both directions work on the rendered HTML by plain substring matching.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from scribe.documents import Document

LINK_PREFIXES = ("/", "./", "../", "")


@dataclass(frozen=True)
class Backlink:
    title: str
    target_url: str


def _reference_patterns(slug: str) -> List[str]:
    patterns: List[str] = []
    for prefix in LINK_PREFIXES:
        patterns.extend([f"{prefix}{slug}/", f'{prefix}{slug}"', f'{prefix}{slug}.md"'])
    return patterns


def backlinks_to(target: Document, documents: Sequence[Document]) -> List[Backlink]:
    """Documents whose rendered body links to target, in collection order."""
    patterns = _reference_patterns(target.slug)
    if target.original_slug != target.slug:
        patterns += _reference_patterns(target.original_slug)

    found: List[Backlink] = []
    for doc in documents:
        if doc.slug == target.slug:
            continue
        if any(pattern in doc.body_html for pattern in patterns):
            found.append(Backlink(title=doc.title, target_url=f"../{doc.slug}/"))
    return found


def _rewrite_pairs(doc: Document) -> List[Tuple[str, str]]:
    pairs: List[Tuple[str, str]] = []
    for prefix in LINK_PREFIXES:
        canonical = f'href="{prefix}{doc.slug}/"'
        for suffix in ("/", "", ".md"):
            pairs.append((f'href="{prefix}{doc.original_slug}{suffix}"', canonical))
    return pairs


def rewrite_internal_links(body_html: str, documents: Sequence[Document]) -> str:
    """Point links written against original filenames at the canonical slug path."""
    result = body_html
    for doc in documents:
        if doc.original_slug == doc.slug:
            continue
        for old, new in _rewrite_pairs(doc):
            result = result.replace(old, new)
    return result
