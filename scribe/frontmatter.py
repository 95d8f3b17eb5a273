"""Split a Markdown source into its YAML front matter and body."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

import yaml

logger = logging.getLogger(__name__)

DELIMITER = "---"


def parse_front_matter(raw: str) -> Tuple[Dict[str, Any], str]:
    """Return (metadata, body) for a document.

    The block is only recognised when the very first line is '---'. Everything
    up to the next '---' line is decoded as YAML; a decode failure or a
    non-mapping value yields empty metadata instead of an error. Without an
    opening delimiter the input comes back untouched. Lines are split on newline
    characters only, so the body keeps its own line endings and control characters.
    """
    lines = raw.split("\n")
    if lines[0].strip() != DELIMITER:
        return {}, raw

    front_lines: List[str] = []
    end_index = len(lines)
    for idx in range(1, len(lines)):
        if lines[idx].strip() == DELIMITER:
            end_index = idx
            break
        front_lines.append(lines[idx])

    body = "\n".join(lines[end_index + 1:])
    return _decode_yaml("\n".join(front_lines)), body


def _decode_yaml(text: str) -> Dict[str, Any]:
    if not text.strip():
        return {}
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        logger.warning("Ignoring unreadable front matter: %s", exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring front matter that is not a mapping (%s)", type(data).__name__)
        return {}
    return {str(key): value for key, value in data.items()}
