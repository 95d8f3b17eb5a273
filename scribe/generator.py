"""Generate the static site from a folder of Markdown posts.

Features:
- Loads every .md file under the posts directory, newest first
- Illuminated initials generated once per leading letter and cached
- Reference links annotated with fetched titles/descriptions
- Backlinks between posts, legacy filename links repaired
- Writes <output>/<slug>/index.html per post, plus index.html and style.css
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence, Set

from scribe.annotations import annotate_document
from scribe.config import SiteConfig
from scribe.documents import Document, DocumentLoadError, load_documents
from scribe.initials import generate_initials, load_initials
from scribe.templates import generate_css, render_index, render_post

logger = logging.getLogger(__name__)


class SiteGenerationError(Exception):
    """A fatal error: the run stops and nothing further is written."""


@dataclass
class GenerationReport:
    documents: int = 0
    pages: List[Path] = field(default_factory=list)
    initials_generated: Set[str] = field(default_factory=set)


def write_post(config: SiteConfig, document: Document, documents: Sequence[Document], initials: Dict[str, str]) -> Path:
    """Annotate, render and write one post; runs in a worker thread."""
    annotations = annotate_document(document)
    initial = initials.get(document.first_letter) if document.first_letter else None
    page = render_post(config, document, documents, annotations=annotations, initial=initial)

    out_dir = config.output_path / document.slug
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / "index.html"
    out_path.write_text(page, encoding="utf-8")
    logger.debug("Wrote %s", out_path)
    return out_path


def write_pages(config: SiteConfig, documents: Sequence[Document], initials: Dict[str, str]) -> List[Path]:
    """Render every post concurrently; the first failure aborts the run."""
    if not documents:
        return []
    with ThreadPoolExecutor(max_workers=min(config.workers, len(documents))) as pool:
        futures = [pool.submit(write_post, config, doc, documents, initials) for doc in documents]
        try:
            return [future.result() for future in futures]
        except OSError as exc:
            for future in futures:
                future.cancel()
            raise SiteGenerationError(f"Failed to write post: {exc}") from exc


def write_assets(config: SiteConfig, documents: Sequence[Document]) -> None:
    output_root = config.output_path
    try:
        (output_root / "index.html").write_text(render_index(config, documents), encoding="utf-8")
        (output_root / "style.css").write_text(generate_css(config), encoding="utf-8")
    except OSError as exc:
        raise SiteGenerationError(f"Failed to write site assets: {exc}") from exc


def generate(config: SiteConfig) -> GenerationReport:
    """One full generation run. Holds no state between calls."""
    logger.info("Generating site...")
    output_root = config.output_path
    try:
        output_root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise SiteGenerationError(f"Failed to create output directory {output_root}: {exc}") from exc

    try:
        documents = load_documents(config.posts_path)
    except DocumentLoadError as exc:
        raise SiteGenerationError(str(exc)) from exc

    report = GenerationReport(documents=len(documents))

    # initials first: a page needs its letter settled before it renders
    report.initials_generated = generate_initials(documents, config.initials_path, config.openai_api_key)
    initials = load_initials(documents, config.initials_path)

    report.pages = write_pages(config, documents, initials)
    write_assets(config, documents)

    logger.info("Generated %d posts", report.documents)
    return report
