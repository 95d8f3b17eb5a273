from pathlib import Path
from typing import List

import pytest

from scribe import annotations, initials
from scribe.config import SiteConfig
from scribe.generator import SiteGenerationError, generate


def _config(tmp_path: Path, **overrides) -> SiteConfig:
    return SiteConfig(
        posts_dir=str(tmp_path / "posts"),
        output_dir=str(tmp_path / "dist"),
        **overrides,
    )


def _post(tmp_path: Path, name: str, text: str) -> None:
    posts = tmp_path / "posts"
    posts.mkdir(exist_ok=True)
    (posts / name).write_text(text, encoding="utf-8")


class _Response:
    status_code = 200

    def json(self):
        return {"data": [{"b64_json": "SU1H"}]}


class _Raw:
    def __init__(self, body: bytes):
        self.body = body

    def read1(self, amt=None, decode_content=None) -> bytes:
        body, self.body = self.body, b""
        return body


class _Page:
    status_code = 200
    encoding = "utf-8"

    def __init__(self, html: str):
        self.raw = _Raw(html.encode("utf-8"))

    def close(self) -> None:
        pass


@pytest.fixture(autouse=True)
def no_network(monkeypatch: pytest.MonkeyPatch) -> None:
    def _refuse(*args, **kwargs):
        raise AssertionError("unexpected network call")

    monkeypatch.setattr(annotations.requests, "get", _refuse)
    monkeypatch.setattr(initials.requests, "post", _refuse)


def test_generates_pages_index_and_css(tmp_path: Path) -> None:
    _post(tmp_path, "First_Post.md", '---\ntitle: "First"\ndate: "2024-01-01T00:00:00Z"\n---\nAlpha body.\n')
    _post(
        tmp_path,
        "second.md",
        '---\ntitle: "Second"\ndate: "2024-02-01T00:00:00Z"\n---\nBeta links to [first](../First_Post.md).\n',
    )

    report = generate(_config(tmp_path))

    dist = tmp_path / "dist"
    assert report.documents == 2
    assert (dist / "style.css").is_file()
    index = (dist / "index.html").read_text()
    assert index.index("./second/") < index.index("./first-post/")

    first = (dist / "first-post" / "index.html").read_text()
    assert '<a href="../second/">Second</a>' in first
    second = (dist / "second" / "index.html").read_text()
    assert 'href="../first-post/"' in second
    assert "illuminated-initial" not in second


def test_empty_posts_directory(tmp_path: Path) -> None:
    report = generate(_config(tmp_path))
    assert report.documents == 0
    assert (tmp_path / "posts").is_dir()
    assert (tmp_path / "dist" / "index.html").is_file()


def test_initials_generated_once_per_letter_and_reused(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[str] = []

    def _post_image(url, headers=None, json=None, timeout=None):
        calls.append(json["prompt"])
        return _Response()

    monkeypatch.setattr(initials.requests, "post", _post_image)
    _post(tmp_path, "one.md", "Apples are red.\n")
    _post(tmp_path, "two.md", "Avocados are green.\n")
    config = _config(tmp_path, openai_api_key="key")

    report = generate(config)
    assert report.initials_generated == {"A"}
    assert len(calls) == 1
    assert (tmp_path / "dist" / "initials" / "A.txt").read_text() == "data:image/png;base64,SU1H"
    page = (tmp_path / "dist" / "one" / "index.html").read_text()
    assert 'src="data:image/png;base64,SU1H"' in page
    assert "<p>pples are red.</p>" in page

    generate(config)
    assert len(calls) == 1


def test_annotations_fetched_for_link_blocks(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    remote = '<meta property="og:title" content="Remote Title">'
    monkeypatch.setattr(annotations.requests, "get", lambda *a, **k: _Page(remote))
    _post(tmp_path, "refs.md", "Reading list.\n\nLinks:\n\n- https://example.com/article\n")

    generate(_config(tmp_path))

    page = (tmp_path / "dist" / "refs" / "index.html").read_text()
    assert '"https://example.com/article": {"description": null, "title": "Remote Title"}' in page


def test_malformed_link_still_writes_the_page(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    fetched: List[str] = []

    def _get(url, **kwargs):
        fetched.append(url)
        return _Page("<title>Fine</title>")

    monkeypatch.setattr(annotations.requests, "get", _get)
    _post(tmp_path, "refs.md", "Reading list.\n\n```links\n- http://[broken\n- https://ok.example/\n```\n")

    report = generate(_config(tmp_path))

    assert fetched == ["https://ok.example/"]
    assert len(report.pages) == 1
    page = (tmp_path / "dist" / "refs" / "index.html").read_text()
    assert '"https://ok.example/": {"description": null, "title": "Fine"}' in page


def test_unreadable_post_aborts(tmp_path: Path) -> None:
    (tmp_path / "posts").mkdir()
    (tmp_path / "posts" / "bad.md").write_bytes(b"\xff\xfe\xfa")
    with pytest.raises(SiteGenerationError):
        generate(_config(tmp_path))


def test_output_directory_that_is_a_file_aborts(tmp_path: Path) -> None:
    (tmp_path / "dist").write_text("not a directory")
    with pytest.raises(SiteGenerationError):
        generate(_config(tmp_path))


def test_colliding_slugs_abort_before_writing(tmp_path: Path) -> None:
    _post(tmp_path, "Hello World.md", "First.\n")
    _post(tmp_path, "hello-world.md", "Second.\n")
    with pytest.raises(SiteGenerationError, match="hello-world"):
        generate(_config(tmp_path))
    assert not (tmp_path / "dist" / "hello-world").exists()
