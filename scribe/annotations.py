"""Fetch titles and descriptions for the reference links in a document.

Authors list links either in a fenced block tagged ``links``/``anno``/
``annotation`` or under a ``Links:``/``Annotations:`` line. Any absolute
``href`` in the rendered body is picked up as well. Each distinct URL is
fetched once and its metadata registered under every spelling a page script
might look it up by.
"""

from __future__ import annotations

import html
import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlsplit, urlunsplit

import requests
from bs4 import BeautifulSoup

from scribe.documents import Document

logger = logging.getLogger(__name__)

MAX_URLS_PER_DOCUMENT = 32
FETCH_TIMEOUT = 8  # seconds
MAX_PAGE_BYTES = 1_000_000
READ_CHUNK_SIZE = 16 * 1024
HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

ANNOTATION_FENCE_LANGS = {"links", "anno", "annotation"}
ANNOTATION_HEADINGS = {"links:", "links", "annotations:", "annotations"}
CODE_FENCE = "```"

LIST_MARKER_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+")
EXPLICIT_LINK_RE = re.compile(r"\[[^\]]*\]\(\s*([^)\s]+)")
BARE_URL_RE = re.compile(r"https?://\S+")
HREF_RE = re.compile(r'href="(http[^"]*)"')
SLASH_RUN_RE = re.compile(r"/{2,}")

# (tag, key) pairs, first non-empty match wins
TITLE_RULES: Tuple[Tuple[str, Optional[str]], ...] = (
    ("meta", "twitter:title"),
    ("meta", "og:title"),
    ("title", None),
)
DESCRIPTION_RULES: Tuple[Tuple[str, Optional[str]], ...] = (
    ("meta", "twitter:description"),
    ("meta", "description"),
    ("meta", "og:description"),
)


@dataclass(frozen=True)
class AnnotationEntry:
    title: Optional[str] = None
    description: Optional[str] = None

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {"title": self.title, "description": self.description}


Annotations = Dict[str, AnnotationEntry]


# -- extraction --
def url_from_line(line: str) -> Optional[str]:
    """Pull the link out of one candidate line (list marker allowed)."""
    text = LIST_MARKER_RE.sub("", line, count=1).strip()
    match = EXPLICIT_LINK_RE.search(text)
    if match and match.group(1).startswith(("http://", "https://")):
        return match.group(1)
    match = BARE_URL_RE.search(text)
    return match.group(0) if match else None


def _markdown_candidates(md_text: str) -> List[str]:
    found: List[str] = []
    lines = md_text.splitlines()
    i = 0
    while i < len(lines):
        stripped = lines[i].strip()
        if stripped.startswith(CODE_FENCE):
            lang = stripped[len(CODE_FENCE):].strip().split(maxsplit=1)
            collect = bool(lang) and lang[0].lower() in ANNOTATION_FENCE_LANGS
            i += 1
            while i < len(lines) and not lines[i].strip().startswith(CODE_FENCE):
                if collect and lines[i].strip():
                    url = url_from_line(lines[i])
                    if url:
                        found.append(url)
                i += 1
            i += 1  # closing fence
            continue

        if stripped.lower() in ANNOTATION_HEADINGS:
            i += 1
            while i < len(lines) and not lines[i].strip():
                i += 1
            while i < len(lines) and LIST_MARKER_RE.match(lines[i]):
                url = url_from_line(lines[i])
                if url:
                    found.append(url)
                i += 1
            continue
        i += 1
    return found


def extract_candidate_urls(md_text: str, body_html: str) -> List[str]:
    """All annotation candidates in a document, duplicates included."""
    found = _markdown_candidates(md_text)
    found.extend(html.unescape(href) for href in HREF_RE.findall(body_html))
    return found


# -- canonical keys --
def canonicalize_url(url: str) -> str:
    """Lowercase scheme/host, drop query and fragment, collapse '//' in the path."""
    parts = urlsplit(url.strip())
    path = SLASH_RUN_RE.sub("/", parts.path)
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, "", ""))


def _toggle_trailing_slash(url: str) -> str:
    parts = urlsplit(url)
    path = parts.path[:-1] if parts.path.endswith("/") else parts.path + "/"
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def url_variants(url: str) -> List[str]:
    """Every key a fetched result is registered under."""
    canonical = canonicalize_url(url)
    variants: List[str] = []
    for key in (canonical, _toggle_trailing_slash(canonical), url):
        if key not in variants:
            variants.append(key)
    return variants


def select_urls(candidates: Sequence[str], limit: int = MAX_URLS_PER_DOCUMENT) -> Dict[str, List[str]]:
    """Group candidates by canonical form, keeping the first `limit` groups."""
    selected: Dict[str, List[str]] = {}
    for url in candidates:
        if not url.lower().startswith(("http://", "https://")):
            continue
        try:
            canonical = canonicalize_url(url)
        except ValueError as exc:
            logger.warning("Skipping malformed link %s: %s", url, exc)
            continue
        if canonical in selected:
            if url not in selected[canonical]:
                selected[canonical].append(url)
        elif len(selected) < limit:
            selected[canonical] = [url]
    return selected


# -- fetching --
def _clean_text(value: str) -> str:
    return " ".join(value.split())


def _meta_content(soup: BeautifulSoup, key: str) -> Optional[str]:
    for meta in soup.find_all("meta"):
        for attr in ("name", "property"):
            value = meta.get(attr)
            if isinstance(value, str) and value.strip().lower() == key:
                content = meta.get("content")
                if isinstance(content, str) and content.strip():
                    return content
    return None


def _first_match(soup: BeautifulSoup, rules: Sequence[Tuple[str, Optional[str]]]) -> Optional[str]:
    for tag, key in rules:
        if tag == "meta" and key:
            value = _meta_content(soup, key)
        else:
            element = soup.find(tag)
            value = element.get_text() if element else None
        if value:
            cleaned = _clean_text(value)
            if cleaned:
                return cleaned
    return None


def extract_page_metadata(page_html: str) -> AnnotationEntry:
    """Title and description from a fetched page's head."""
    soup = BeautifulSoup(page_html, "html.parser")
    return AnnotationEntry(
        title=_first_match(soup, TITLE_RULES),
        description=_first_match(soup, DESCRIPTION_RULES),
    )


def _read_body(response: requests.Response, deadline: float) -> bytes:
    """Read at most MAX_PAGE_BYTES, stopping once the deadline has passed.

    read1 returns as soon as any bytes arrive, so a server that trickles
    its reply cannot hold the caller past the deadline by more than one
    read timeout.
    """
    chunks: List[bytes] = []
    size = 0
    while size < MAX_PAGE_BYTES and time.monotonic() < deadline:
        chunk = response.raw.read1(READ_CHUNK_SIZE, decode_content=True)
        if not chunk:
            break
        chunks.append(chunk)
        size += len(chunk)
    return b"".join(chunks)[:MAX_PAGE_BYTES]


def fetch_page_metadata(url: str, timeout: float = FETCH_TIMEOUT) -> AnnotationEntry:
    """GET a page once; any failure gives an empty entry.

    `timeout` bounds the whole fetch, not just the gap between bytes. A page
    cut short by the deadline or the size cap is parsed as far as it got.
    """
    deadline = time.monotonic() + timeout
    try:
        response = requests.get(url, headers=HEADERS, timeout=timeout, stream=True)
    except Exception as exc:  # requests errors, or anything raised on a malformed url
        logger.warning("Could not fetch %s: %s", url, exc)
        return AnnotationEntry()
    try:
        if not 200 <= response.status_code < 300:
            logger.warning("Could not fetch %s: HTTP %s", url, response.status_code)
            return AnnotationEntry()
        body = _read_body(response, deadline)
        text = body.decode(response.encoding or "utf-8", errors="replace")
        return extract_page_metadata(text)
    except Exception as exc:
        logger.warning("Could not read %s: %r", url, exc)
        return AnnotationEntry()
    finally:
        response.close()


def annotate_document(
    document: Document,
    fetch: Callable[[str], AnnotationEntry] = fetch_page_metadata,
) -> Optional[Annotations]:
    """Fetch metadata for a document's links concurrently.

    Returns None when the document has no candidate URLs.
    """
    selected = select_urls(extract_candidate_urls(document.body_markdown, document.body_html))
    if not selected:
        return None

    with ThreadPoolExecutor(max_workers=len(selected)) as pool:
        futures = {canonical: pool.submit(fetch, urls[0]) for canonical, urls in selected.items()}

    annotations: Annotations = {}
    for canonical, urls in selected.items():
        entry = futures[canonical].result()
        for url in urls:
            for key in url_variants(url):
                annotations[key] = entry
    logger.debug("%s: annotated %d links", document.slug, len(selected))
    return annotations


def annotations_payload(annotations: Optional[Annotations]) -> Dict[str, Dict[str, Optional[str]]]:
    """JSON-ready form of an annotation map."""
    if not annotations:
        return {}
    return {key: entry.as_dict() for key, entry in annotations.items()}
