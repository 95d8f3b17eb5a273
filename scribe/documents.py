"""Load Markdown sources into the document model used by the generator."""

from __future__ import annotations

import datetime as dt
import html
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import markdown

from scribe.autolink import autolink
from scribe.frontmatter import parse_front_matter
from scribe.slugs import sanitize_slug

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIXES = {".md", ".markdown"}
MARKDOWN_EXTENSIONS = ["extra", "fenced_code", "tables"]

FIRST_PARAGRAPH_RE = re.compile(r"<p>(.*?)</p>", re.DOTALL)
TAG_RE = re.compile(r"<[^>]+>")


class DocumentLoadError(Exception):
    """Raised when a source file cannot be loaded; aborts the whole run."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"Failed to load {path}: {reason}")


class DuplicateSlugError(DocumentLoadError):
    """Two source files map to the same output directory."""

    def __init__(self, slug: str, first: Path, second: Path):
        self.slug = slug
        self.other_path = first
        super().__init__(second, f"slug '{slug}' is already used by {first}")


@dataclass(frozen=True)
class Document:
    original_slug: str
    slug: str
    title: str
    date: dt.datetime
    excerpt: Optional[str]
    body_markdown: str
    body_html: str
    first_letter: Optional[str]
    metadata: Dict[str, Any] = field(default_factory=dict)
    source_path: Optional[Path] = None


def is_markdown_file(path: Path) -> bool:
    return path.suffix.lower() in MARKDOWN_SUFFIXES


def render_markdown(md_text: str) -> str:
    """Convert markdown to HTML with minimal extensions."""
    return markdown.markdown(md_text, extensions=MARKDOWN_EXTENSIONS)


def find_first_letter(body_html: str) -> Optional[str]:
    """First alphabetic character of the first paragraph's text, uppercased."""
    match = FIRST_PARAGRAPH_RE.search(body_html)
    if not match:
        return None
    text = html.unescape(TAG_RE.sub("", match.group(1)))
    for ch in text:
        if ch.isalpha():
            return ch.upper()[0]
    return None


def parse_date(value: Any) -> Optional[dt.datetime]:
    """Coerce a front matter date (string or YAML timestamp) to aware UTC."""
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        parsed = dt.datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = dt.datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)


def _file_date(path: Path) -> dt.datetime:
    try:
        mtime = path.stat().st_mtime
    except OSError:
        return dt.datetime.now(dt.timezone.utc)
    return dt.datetime.fromtimestamp(int(mtime), tz=dt.timezone.utc)


def _first_nonblank_line(text: str) -> Optional[str]:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return None


def parse_document(raw: str, path: Path) -> Document:
    """Build a Document from a source file's text."""
    metadata, body = parse_front_matter(raw)
    body_markdown = autolink(body)
    body_html = render_markdown(body_markdown)

    title = metadata.get("title")
    if not isinstance(title, str) or not title.strip():
        title = path.stem

    date = None
    if "date" in metadata:
        date = parse_date(metadata["date"])
        if date is None:
            logger.warning("%s: unparseable date %r, using file time", path.name, metadata["date"])
    if date is None:
        date = _file_date(path)

    excerpt = metadata.get("excerpt")
    if not isinstance(excerpt, str):
        excerpt = _first_nonblank_line(body_markdown)

    original_slug = path.stem
    return Document(
        original_slug=original_slug,
        slug=sanitize_slug(original_slug),
        title=title,
        date=date,
        excerpt=excerpt,
        body_markdown=body_markdown,
        body_html=body_html,
        first_letter=find_first_letter(body_html),
        metadata=metadata,
        source_path=path,
    )


def _check_unique_slugs(documents: List[Document]) -> None:
    seen: Dict[str, Path] = {}
    for doc in documents:
        if doc.slug in seen:
            raise DuplicateSlugError(doc.slug, seen[doc.slug], doc.source_path)
        seen[doc.slug] = doc.source_path


def load_documents(source_dir: Path) -> List[Document]:
    """Load every Markdown file under source_dir, newest first.

    A missing directory is created and yields no documents. Any file that
    cannot be read raises DocumentLoadError, and two files whose names
    sanitize to the same slug raise DuplicateSlugError.
    """
    if not source_dir.exists():
        source_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Created empty posts directory %s", source_dir)
        return []

    paths = sorted(
        p for p in source_dir.rglob("*")
        if p.is_file() and is_markdown_file(p)
        and not any(part.startswith(".") for part in p.relative_to(source_dir).parts)
    )

    documents: List[Document] = []
    for path in paths:
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentLoadError(path, str(exc)) from exc
        documents.append(parse_document(raw, path))
    _check_unique_slugs(documents)

    # stable: equal dates keep path order
    documents.sort(key=lambda d: d.date, reverse=True)
    logger.debug("Loaded %d documents from %s", len(documents), source_dir)
    return documents
