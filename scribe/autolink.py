"""Turn bare URLs in Markdown into explicit links, leaving code alone."""

from __future__ import annotations

import re

CODE_FENCE = "```"
URL_RE = re.compile(r"https?://[^\s<>()\[\]\"]+")
# almost never the last character of a real URL
TRAILING_PUNCTUATION = ".,;:!?)]"


def autolink(markdown: str) -> str:
    """Rewrite bare http(s) URLs as [url](url).

    Fenced code blocks and `inline code` spans pass through untouched, as do
    URLs that already sit inside explicit link syntax, angle brackets or a
    quoted HTML attribute.
    """
    in_fence = False
    out = []
    for line in markdown.splitlines(keepends=True):
        if line.strip().startswith(CODE_FENCE):
            in_fence = not in_fence
            out.append(line)
        elif in_fence:
            out.append(line)
        else:
            out.append(_autolink_line(line))
    return "".join(out)


def _autolink_line(line: str) -> str:
    # even indices sit outside backtick spans
    parts = line.split("`")
    for idx in range(0, len(parts), 2):
        parts[idx] = _link_urls(parts[idx])
    return "`".join(parts)


def _link_urls(text: str) -> str:
    def _repl(match: re.Match[str]) -> str:
        raw = match.group(0)
        before = text[: match.start()]
        after = text[match.end():]
        if before.endswith("]("):
            return raw
        if before.endswith("<") and after.startswith(">"):
            return raw
        if before.endswith("[") and after.startswith("]("):
            return raw
        if before.endswith(('"', "'")):
            return raw
        url = raw.rstrip(TRAILING_PUNCTUATION)
        if url.endswith("://"):
            return raw
        return f"[{url}]({url}){raw[len(url):]}"

    return URL_RE.sub(_repl, text)
