"""Illuminated initials: one generated image per leading letter, cached on disk.

Images come from the OpenAI image API and are stored as data URIs in
``<output>/initials/<LETTER>.txt``. A cached letter is never requested again
until its file is deleted.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set

import requests

from scribe.documents import Document

logger = logging.getLogger(__name__)

IMAGE_API_URL = "https://api.openai.com/v1/images/generations"
IMAGE_MODEL = "gpt-image-1"
IMAGE_SIZE = "1024x1024"
REQUEST_TIMEOUT = 180  # seconds; image generation is slow

PROMPT_TEMPLATE = (
    "A black background with white ink drawing featuring an illuminated initial '{letter}' "
    "in the Italian Futurist style, with geometric and abstract forms, swirling lines, and "
    "dynamic composition reminiscent of early 20th-century avant-garde art. The background "
    "should be pure black with white forms and lines."
)


class InitialGenerationError(Exception):
    """Raised when the image API does not return a usable image for a letter."""

    def __init__(self, letter: str, reason: str):
        self.letter = letter
        super().__init__(f"Could not generate initial '{letter}': {reason}")


def initial_path(initials_dir: Path, letter: str) -> Path:
    return initials_dir / f"{letter}.txt"


def load_initial(initials_dir: Path, letter: Optional[str]) -> Optional[str]:
    """Cached data URI for a letter, or None."""
    if not letter:
        return None
    path = initial_path(initials_dir, letter)
    if not path.is_file():
        return None
    return path.read_text(encoding="utf-8").strip() or None


def request_initial(letter: str, api_key: str) -> str:
    """Ask the image API for one initial and return it as a PNG data URI."""
    response = requests.post(
        IMAGE_API_URL,
        headers={"Authorization": f"Bearer {api_key}"},
        json={
            "model": IMAGE_MODEL,
            "prompt": PROMPT_TEMPLATE.format(letter=letter),
            "n": 1,
            "size": IMAGE_SIZE,
        },
        timeout=REQUEST_TIMEOUT,
    )
    if not 200 <= response.status_code < 300:
        raise InitialGenerationError(letter, f"HTTP {response.status_code}: {response.text[:200]}")
    try:
        b64 = response.json()["data"][0]["b64_json"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise InitialGenerationError(letter, "no image data in response") from exc
    if not isinstance(b64, str) or not b64:
        raise InitialGenerationError(letter, "no image data in response")
    return f"data:image/png;base64,{b64}"


def parse_letters(text: str) -> List[str]:
    """Accept 'ABC' or 'a, b, c'; return unique uppercase letters in order."""
    if "," in text:
        chunks = [chunk.strip()[:1] for chunk in text.split(",")]
    else:
        chunks = list(text)
    letters: List[str] = []
    for ch in chunks:
        if ch and ch.isalpha():
            upper = ch.upper()[0]
            if upper not in letters:
                letters.append(upper)
    return letters


def generate_letters(
    letters: Iterable[str],
    initials_dir: Path,
    api_key: str,
    requester: Callable[[str, str], str] = request_initial,
) -> Set[str]:
    """Generate every uncached letter once, concurrently.

    Returns the letters written this call. A failing letter is logged and
    left uncached; the others still complete.
    """
    initials_dir.mkdir(parents=True, exist_ok=True)
    missing: List[str] = []
    for letter in dict.fromkeys(letters):
        if initial_path(initials_dir, letter).exists():
            logger.info("Illuminated initial for '%s' already exists, skipping", letter)
        else:
            missing.append(letter)
    if not missing:
        return set()

    logger.info("Generating %d illuminated initials: %s", len(missing), "".join(missing))
    with ThreadPoolExecutor(max_workers=len(missing)) as pool:
        futures = {letter: pool.submit(requester, letter, api_key) for letter in missing}

    written: Set[str] = set()
    for letter, future in futures.items():
        try:
            payload = future.result()
        except (InitialGenerationError, requests.RequestException) as exc:
            logger.error("Failed to generate illuminated initial for '%s': %s", letter, exc)
            continue
        initial_path(initials_dir, letter).write_text(payload, encoding="utf-8")
        logger.info("Generated illuminated initial for '%s'", letter)
        written.add(letter)
    return written


def generate_initials(
    documents: Iterable[Document],
    initials_dir: Path,
    api_key: Optional[str],
    requester: Callable[[str, str], str] = request_initial,
) -> Set[str]:
    """Make sure every document's first letter has a cached initial."""
    letters = sorted({doc.first_letter for doc in documents if doc.first_letter})
    if not letters:
        return set()
    if not api_key:
        logger.warning("OPENAI_API_KEY not set. Skipping illuminated initials.")
        return set()
    return generate_letters(letters, initials_dir, api_key, requester=requester)


def load_initials(documents: Iterable[Document], initials_dir: Path) -> Dict[str, str]:
    """Cached payloads for every first letter in use."""
    found: Dict[str, str] = {}
    for doc in documents:
        letter = doc.first_letter
        if letter and letter not in found:
            payload = load_initial(initials_dir, letter)
            if payload:
                found[letter] = payload
    return found
