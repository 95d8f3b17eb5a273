"""Fixed HTML for post pages, the index and the stylesheet."""

from __future__ import annotations

import html
import json
import re
from typing import Optional, Sequence

from scribe.annotations import Annotations, annotations_payload
from scribe.backlinks import Backlink, backlinks_to, rewrite_internal_links
from scribe.config import SiteConfig
from scribe.documents import Document

FONTS_HREF = (
    "https://fonts.googleapis.com/css2?family=Crimson+Text:ital,wght@0,400;0,600;1,400"
    "&family=Inter:wght@400;600;700&display=swap"
)
DISPLAY_DATE_FORMAT = "%d/%m/%Y"
PARAGRAPH_LEAD_RE = re.compile(r"<p>((?:<[^>]+>)*)([^<&\s])")

ANNOTATION_SCRIPT = """
(function () {
  var node = document.getElementById('annotations');
  if (!node) return;
  var data = JSON.parse(node.textContent);
  function lookup(url) { return data[url] || data[url.replace(/\\/$/, '')] || data[url + '/']; }
  document.querySelectorAll('code.language-links, code.language-anno, code.language-annotation').forEach(function (code) {
    var list = document.createElement('ul');
    list.className = 'annotations';
    code.textContent.split('\\n').forEach(function (line) {
      var match = line.match(/https?:\\/\\/[^\\s)]+/);
      if (!match) return;
      var item = document.createElement('li');
      var link = document.createElement('a');
      link.href = match[0];
      link.textContent = match[0];
      item.appendChild(link);
      list.appendChild(item);
    });
    code.parentNode.replaceWith(list);
  });
  document.querySelectorAll('.post-content a[href^="http"]').forEach(function (a) {
    var entry = lookup(a.getAttribute('href'));
    if (!entry || !(entry.title || entry.description)) return;
    if (entry.title && a.textContent === a.getAttribute('href')) a.textContent = entry.title;
    if (entry.description) {
      a.title = entry.description;
      if (a.closest('li')) {
        var note = document.createElement('span');
        note.className = 'annotation-description';
        note.textContent = entry.description;
        a.parentNode.insertBefore(note, a.nextSibling);
      }
    }
  });
})();
"""


def _page(title: str, css_href: str, home_href: str, site_title: str, main_html: str, extra_head: str = "", footer_html: str = "") -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{html.escape(title)}</title>{extra_head}
    <link rel="stylesheet" href="{css_href}">
    <link rel="preconnect" href="https://fonts.googleapis.com">
    <link rel="preconnect" href="https://fonts.gstatic.com" crossorigin>
    <link href="{html.escape(FONTS_HREF)}" rel="stylesheet">
</head>
<body>
    <div class="container">
        <header>
            <div class="header-content">
                <a href="{home_href}" class="pilcrow">¶</a>
                <a href="{home_href}" class="main-title">{html.escape(site_title.upper())}</a>
            </div>
        </header>

        <main class="content">
{main_html}
        </main>
{footer_html}
    </div>
</body>
</html>
"""


def apply_initial(body_html: str, letter: str, payload: str) -> str:
    """Drop the leading letter of the first paragraph and put the image before it."""
    start = body_html.find("<p>")
    if start != -1:
        match = PARAGRAPH_LEAD_RE.match(body_html, start)
        if match and match.group(2).upper() == letter:
            body_html = body_html[: match.start(2)] + body_html[match.end(2):]
    block = (
        '<div class="illuminated-initial">'
        f'<img src="{html.escape(payload, quote=True)}" alt="Illuminated initial {html.escape(letter)}" class="initial-image">'
        "</div>"
    )
    return block + "\n" + body_html


def render_annotations(annotations: Optional[Annotations]) -> str:
    """Inline JSON payload plus the script that reads it; empty when nothing was fetched."""
    payload = annotations_payload(annotations)
    if not payload:
        return ""
    data = json.dumps(payload, ensure_ascii=False, sort_keys=True).replace("</", "<\\/")
    return (
        f'<script type="application/json" id="annotations">{data}</script>\n'
        f"<script>{ANNOTATION_SCRIPT}</script>"
    )


def render_backlinks(backlinks: Sequence[Backlink]) -> str:
    if not backlinks:
        return ""
    items = "\n".join(
        f'                    <li><a href="{html.escape(link.target_url)}">{html.escape(link.title)}</a></li>'
        for link in backlinks
    )
    return f"""            <section class="backlinks">
                <h2>Backlinks</h2>
                <ul>
{items}
                </ul>
            </section>"""


def render_post(
    config: SiteConfig,
    document: Document,
    documents: Sequence[Document],
    annotations: Optional[Annotations] = None,
    initial: Optional[str] = None,
) -> str:
    """Full page for one post. `initial` is the cached image payload, if any."""
    content = document.body_html
    if initial and document.first_letter:
        content = apply_initial(content, document.first_letter, initial)
    content = rewrite_internal_links(content, documents)

    main_html = f"""            <article>
                <h1 class="post-title">{html.escape(document.title)}</h1>
                <div class="post-content">
{content}
                </div>
            </article>
{render_backlinks(backlinks_to(document, documents))}
{render_annotations(annotations)}"""

    footer_html = """        <footer>
            <a href="../" class="home-link">← Back to all posts</a>
        </footer>"""
    extra_head = ""
    if document.excerpt:
        extra_head = f'\n    <meta name="description" content="{html.escape(document.excerpt)}">'
    return _page(
        title=f"{document.title} - {config.title}",
        css_href="../style.css",
        home_href="../",
        site_title=config.title,
        main_html=main_html,
        extra_head=extra_head,
        footer_html=footer_html,
    )


def render_index(config: SiteConfig, documents: Sequence[Document]) -> str:
    """Index page listing every post in the given order."""
    previews = []
    for doc in documents:
        excerpt_html = f'\n    <p class="excerpt">{html.escape(doc.excerpt)}</p>' if doc.excerpt else ""
        previews.append(
            f"""<article class="post-preview">
    <div class="post-header">
        <h2><a href="./{doc.slug}/">{html.escape(doc.title)}</a></h2>
        <time datetime="{doc.date.isoformat()}">{doc.date.strftime(DISPLAY_DATE_FORMAT)}</time>
    </div>{excerpt_html}
</article>"""
        )
    main_html = f"""            <section class="posts-list">
{chr(10).join(previews)}
            </section>"""

    extra_head = ""
    if config.description:
        extra_head += f'\n    <meta name="description" content="{html.escape(config.description)}">'
    if config.author:
        extra_head += f'\n    <meta name="author" content="{html.escape(config.author)}">'
    return _page(
        title=config.title,
        css_href="./style.css",
        home_href="./",
        site_title=config.title,
        main_html=main_html,
        extra_head=extra_head,
    )


def generate_css(config: SiteConfig) -> str:
    """Stylesheet with the configured theme colours."""
    theme = config.theme
    root = f"""/* Theme */
:root {{
  --primary: {theme.primary_color};
  --background: {theme.background_color};
  --text: {theme.text_color};
  --accent: {theme.accent_color};
  --rule: #4a4a4a;
  --faint-rule: #2a2a2a;
  --soft-text: #d0d0d0;
  --code-bg: #1a1a1a;
}}
"""
    return root + BASE_CSS


BASE_CSS = """
/* Reset and base styles */
* {
  margin: 0;
  padding: 0;
  box-sizing: border-box;
}

body {
  background-color: var(--background);
  color: var(--text);
  font-family: 'Crimson Text', Georgia, serif;
  line-height: 1.7;
  font-size: 18px;
  -webkit-font-smoothing: antialiased;
  -moz-osx-font-smoothing: grayscale;
}

.container {
  max-width: 800px;
  margin: 0 auto;
  padding: 0 20px;
}

/* Header */
header {
  padding: 40px 0;
  margin-bottom: 60px;
}

.header-content {
  display: flex;
  align-items: center;
  justify-content: space-between;
}

.pilcrow {
  font-size: 24px;
  color: var(--primary);
  text-decoration: none;
  transition: color 0.2s ease;
}

.main-title {
  font-size: 32px;
  font-weight: 700;
  letter-spacing: 0.1em;
  color: var(--primary);
  position: relative;
  text-decoration: none;
  transition: color 0.2s ease;
}

.pilcrow:hover, .main-title:hover {
  color: var(--accent);
}

.main-title::after {
  content: '';
  position: absolute;
  bottom: -8px;
  left: 0;
  right: 0;
  height: 1px;
  background-color: var(--rule);
}

/* Content */
.content {
  margin-bottom: 80px;
}

.post-title {
  font-size: 42px;
  font-weight: 700;
  line-height: 1.2;
  margin-bottom: 30px;
  color: var(--primary);
  position: relative;
}

.post-title::after {
  content: '';
  position: absolute;
  bottom: -12px;
  left: 0;
  right: 0;
  height: 1px;
  background-color: var(--rule);
}

.post-content {
  font-size: 20px;
  line-height: 1.4;
  margin-bottom: 60px;
}

.post-content p {
  margin-bottom: 1.5em;
  text-align: justify;
  hyphens: auto;
}

.post-content h1, .post-content h2, .post-content h3 {
  font-weight: 600;
  margin: 40px 0 20px 0;
  color: var(--primary);
}

.post-content h1 { font-size: 32px; }
.post-content h2 { font-size: 28px; text-align: right; }
.post-content h3 { font-size: 22px; text-align: right; }

.post-content ul, .post-content ol {
  margin: 20px 0;
  padding-left: 30px;
}

.post-content li {
  margin-bottom: 8px;
}

.post-content blockquote {
  border-left: 3px solid var(--rule);
  padding-left: 20px;
  margin: 30px 0;
  font-style: italic;
  color: var(--soft-text);
}

.post-content code {
  background-color: var(--code-bg);
  padding: 2px 6px;
  border-radius: 3px;
  font-family: 'SF Mono', Monaco, 'Cascadia Code', 'Roboto Mono', Consolas, 'Courier New', monospace;
  font-size: 0.9em;
}

.post-content pre {
  background-color: var(--code-bg);
  padding: 20px;
  border-radius: 6px;
  overflow-x: auto;
  margin: 20px 0;
}

.post-content pre code {
  background: none;
  padding: 0;
}

/* Illuminated initial */
.illuminated-initial {
  float: left;
  margin: 0 12px 20px 0;
}

.initial-image {
  width: 80px;
  height: 80px;
  object-fit: cover;
  box-shadow: 0 4px 12px rgba(0, 0, 0, 0.3);
  border: 1px solid var(--rule);
}

/* Annotations */
.annotation-description {
  display: block;
  font-size: 16px;
  color: var(--accent);
}

/* Links */
a {
  color: var(--accent);
  text-decoration: underline;
  text-decoration-color: var(--rule);
  text-underline-offset: 2px;
  transition: color 0.2s ease;
}

a:hover {
  color: var(--primary);
  text-decoration-color: var(--accent);
}

/* Backlinks */
.backlinks {
  margin-top: 60px;
  padding-top: 40px;
  border-top: 1px solid var(--faint-rule);
}

.backlinks h2 {
  font-size: 24px;
  font-weight: 600;
  margin-bottom: 20px;
  color: var(--primary);
}

.backlinks ul {
  list-style: none;
}

.backlinks li {
  margin-bottom: 12px;
}

.backlinks a {
  font-size: 16px;
}

/* Index */
.posts-list {
  display: flex;
  flex-direction: column;
  gap: 30px;
}

.post-preview {
  padding-bottom: 30px;
  border-bottom: 1px solid var(--faint-rule);
}

.post-preview:last-child {
  border-bottom: none;
}

.post-header {
  display: flex;
  justify-content: space-between;
  align-items: baseline;
  margin-bottom: 8px;
}

.post-preview h2 {
  font-size: 28px;
  font-weight: 600;
  flex: 1;
}

.post-preview h2 a {
  color: var(--primary);
  text-decoration: none;
}

.post-preview h2 a:hover {
  color: var(--accent);
}

.post-preview time {
  font-size: 14px;
  color: var(--accent);
  font-family: 'Inter', sans-serif;
  letter-spacing: 0.05em;
  white-space: nowrap;
  margin-left: 20px;
}

.post-preview .excerpt {
  font-size: 16px;
  color: var(--soft-text);
  line-height: 1.5;
}

/* Footer */
footer {
  padding: 40px 0;
  border-top: 1px solid var(--faint-rule);
  text-align: center;
}

.home-link {
  font-size: 16px;
  text-decoration: none;
}

@media (max-width: 768px) {
  .container { padding: 0 15px; }
  .main-title { font-size: 24px; }
  .post-title { font-size: 32px; }
  .post-content { font-size: 18px; }
  .illuminated-initial { float: none; margin: 0 0 20px 0; text-align: center; }
  .initial-image { width: 60px; height: 60px; }
  .header-content { flex-direction: column; gap: 20px; text-align: center; }
  .post-header { flex-direction: column; align-items: flex-start; gap: 4px; }
  .post-preview time { margin-left: 0; font-size: 12px; }
}

@media print {
  body { background: white; color: black; }
  .illuminated-initial { display: none; }
}
"""
