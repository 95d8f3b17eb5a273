import datetime as dt

from scribe.frontmatter import parse_front_matter


def test_parses_yaml_block_and_body() -> None:
    raw = '---\ntitle: "X"\nexcerpt: "Y"\n---\nZ\n\nmore text'
    metadata, body = parse_front_matter(raw)
    assert metadata == {"title": "X", "excerpt": "Y"}
    assert body == "Z\n\nmore text"


def test_no_front_matter_returns_input_unchanged() -> None:
    raw = "# Heading\n\nJust a body.\n"
    metadata, body = parse_front_matter(raw)
    assert metadata == {}
    assert body == raw


def test_delimiter_must_be_first_line() -> None:
    raw = "intro\n---\ntitle: nope\n---\n"
    metadata, body = parse_front_matter(raw)
    assert metadata == {}
    assert body == raw


def test_invalid_yaml_degrades_to_empty_metadata() -> None:
    raw = "---\ntitle: [unclosed\n---\nbody"
    metadata, body = parse_front_matter(raw)
    assert metadata == {}
    assert body == "body"


def test_non_mapping_yaml_is_ignored() -> None:
    metadata, body = parse_front_matter("---\n- a\n- b\n---\nbody")
    assert metadata == {}
    assert body == "body"


def test_unterminated_block_consumes_rest() -> None:
    metadata, body = parse_front_matter("---\ntitle: Lost\n")
    assert metadata == {"title": "Lost"}
    assert body == ""


def test_unquoted_timestamp_decodes_as_datetime() -> None:
    metadata, _ = parse_front_matter("---\ndate: 2024-01-20T00:00:00Z\n---\n")
    assert isinstance(metadata["date"], dt.datetime)


def test_delimiter_with_surrounding_whitespace() -> None:
    metadata, body = parse_front_matter("---  \ntitle: T\n  ---\nbody")
    assert metadata == {"title": "T"}
    assert body == "body"


def test_body_keeps_crlf_line_endings() -> None:
    metadata, body = parse_front_matter("---\r\ntitle: T\r\n---\r\nfirst\r\n\r\nsecond\r\n")
    assert metadata == {"title": "T"}
    assert body == "first\r\n\r\nsecond\r\n"


def test_body_keeps_unicode_line_separators() -> None:
    raw = "---\ntitle: T\n---\npage\x0cbreak\u2028same line\x1cend\n"
    _, body = parse_front_matter(raw)
    assert body == "page\x0cbreak\u2028same line\x1cend\n"
