import datetime as dt
import json
import re

from scribe.annotations import AnnotationEntry
from scribe.config import SiteConfig, Theme
from scribe.documents import Document, find_first_letter, render_markdown
from scribe.slugs import sanitize_slug
from scribe.templates import apply_initial, generate_css, render_index, render_post


def _doc(original_slug: str, markdown_text: str, title: str = "", day: int = 1, excerpt=None) -> Document:
    body_html = render_markdown(markdown_text)
    return Document(
        original_slug=original_slug,
        slug=sanitize_slug(original_slug),
        title=title or original_slug,
        date=dt.datetime(2024, 1, day, 9, 30, tzinfo=dt.timezone.utc),
        excerpt=excerpt,
        body_markdown=markdown_text,
        body_html=body_html,
        first_letter=find_first_letter(body_html),
    )


CONFIG = SiteConfig(title="Ink & Paper")


def test_initial_replaces_leading_letter() -> None:
    doc = _doc("post", "Once upon a time.\n\nLater on.")
    page = render_post(CONFIG, doc, [doc], initial="data:image/png;base64,AAA")
    assert '<img src="data:image/png;base64,AAA" alt="Illuminated initial O"' in page
    assert "<p>nce upon a time.</p>" in page
    assert "<p>Later on.</p>" in page


def test_initial_inside_inline_markup() -> None:
    out = apply_initial("<p><em>Quiet</em> day</p>", "Q", "data:x")
    assert out.endswith("<p><em>uiet</em> day</p>")


def test_no_initial_leaves_paragraph_alone() -> None:
    doc = _doc("post", "Once upon a time.")
    page = render_post(CONFIG, doc, [doc])
    assert "<p>Once upon a time.</p>" in page
    assert "illuminated-initial" not in page


def test_links_to_original_slug_are_rewritten() -> None:
    target = _doc("My_Old_Post", "Target body.", title="Old")
    source = _doc("source", "See [old](../My_Old_Post.md) and [plain](../source/).")
    page = render_post(CONFIG, source, [target, source])
    assert 'href="../my-old-post/"' in page
    assert "My_Old_Post.md" not in page


def test_backlinks_section_present_only_when_linked() -> None:
    a = _doc("a-post", "Alpha.", title="Alpha")
    b = _doc("b-post", "Link to [a](../a-post/).", title="Beta <3")
    page_a = render_post(CONFIG, a, [a, b])
    page_b = render_post(CONFIG, b, [a, b])
    assert '<section class="backlinks">' in page_a
    assert '<a href="../b-post/">Beta &lt;3</a>' in page_a
    assert "<section class=\"backlinks\">" not in page_b


def test_annotations_embedded_as_json() -> None:
    doc = _doc("post", "Hi [x](https://a.com/).")
    annotations = {
        "https://a.com/": AnnotationEntry(title="A </script> site", description=None),
        "https://a.com": AnnotationEntry(title="A </script> site", description=None),
    }
    page = render_post(CONFIG, doc, [doc], annotations=annotations)
    match = re.search(r'<script type="application/json" id="annotations">(.*?)</script>', page, re.S)
    assert match
    data = json.loads(match.group(1))
    assert data["https://a.com/"] == {"title": "A </script> site", "description": None}


def test_no_annotations_no_payload() -> None:
    doc = _doc("post", "Hi.")
    assert 'id="annotations"' not in render_post(CONFIG, doc, [doc], annotations=None)
    assert 'id="annotations"' not in render_post(CONFIG, doc, [doc], annotations={})


def test_post_page_skeleton() -> None:
    doc = _doc("post", "Body.", title="A & B")
    page = render_post(CONFIG, doc, [doc])
    assert page.startswith("<!DOCTYPE html>")
    assert "<title>A &amp; B - Ink &amp; Paper</title>" in page
    assert 'href="../style.css"' in page
    assert "INK &amp; PAPER" in page
    assert '<a href="../" class="home-link">' in page


def test_index_lists_posts_in_given_order() -> None:
    newer = _doc("Newer One", "n", title="Newer", day=20, excerpt="Fresh <stuff>")
    older = _doc("older", "o", title="Older", day=2)
    page = render_index(CONFIG, [newer, older])
    assert page.index("./newer-one/") < page.index("./older/")
    assert '<time datetime="2024-01-20T09:30:00+00:00">20/01/2024</time>' in page
    assert '<p class="excerpt">Fresh &lt;stuff&gt;</p>' in page
    assert 'href="./style.css"' in page
    assert "illuminated-initial" not in page
    assert "backlinks" not in page


def test_css_uses_theme_colours() -> None:
    css = generate_css(SiteConfig(theme=Theme(background_color="#101010", accent_color="#abcdef")))
    assert "--background: #101010;" in css
    assert "--accent: #abcdef;" in css
    assert "background-color: var(--background);" in css
