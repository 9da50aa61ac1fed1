"""
tests/test_frontmatter.py
"""
import pytest

from berozgaar.blog import parse_frontmatter


def test_body_after_closing_delimiter_is_verbatim():
    body = "\n# Title\n\n  indented *text*\n\ntrailing spaces   \n"
    doc = parse_frontmatter("---\ntitle: Hi\n---\n" + body)
    assert doc.content == body
    assert doc.meta["title"] == "Hi"


def test_no_frontmatter_returns_text_unchanged():
    text = "# Just markdown\n\n---\nnot: a header\n---\n"
    doc = parse_frontmatter(text)
    assert doc.meta == {}
    assert doc.content == text


@pytest.mark.parametrize(
    "text",
    [
        "---\ntitle: never closed\n\nbody",
        "---\ntitle: closed without newline\n---",
        "",
    ],
)
def test_malformed_header_is_silent(text):
    doc = parse_frontmatter(text)
    assert doc.meta == {}
    assert doc.content == text


@pytest.mark.parametrize(
    "line, value",
    [
        ('title: "Quoted"', "Quoted"),
        ("title: 'Single'", "Single"),
        ("title: \"Mismatched'", "\"Mismatched'"),
        ('title: "', '"'),
        ("title:   spaced   ", "spaced"),
        ("title: a: b", "a: b"),      # first colon splits
        ("title:", ""),
    ],
)
def test_value_trimming_and_quotes(line, value):
    doc = parse_frontmatter(f"---\n{line}\n---\nbody")
    assert doc.meta["title"] == value


def test_no_type_coercion():
    doc = parse_frontmatter("---\ndraft: false\ncount: 42\n---\n")
    assert doc.meta["draft"] == "false"
    assert doc.meta["count"] == "42"


def test_tags_list():
    doc = parse_frontmatter("---\ntags:\n- a\n- b\n---\nbody")
    assert doc.meta["tags"] == ["a", "b"]


def test_indented_tags_and_colon_inside_item():
    doc = parse_frontmatter("---\ntags:\n  - python\n  - c: d\ntitle: T\n---\n")
    assert doc.meta["tags"] == ["python", "c: d"]
    assert doc.meta["title"] == "T"


def test_dash_lines_follow_the_latest_tags_line():
    text = "---\ntags:\n- a\ntitle: T\n- b\ntags:\n- c\n---\n"
    doc = parse_frontmatter(text)
    # items after another key still land in tags; a second tags: resets
    assert doc.meta["tags"] == ["c"]


def test_dash_without_tags_is_ignored():
    doc = parse_frontmatter("---\n- orphan\ntitle: T\n---\n")
    assert doc.meta == {"title": "T"}


def test_lines_without_colon_are_ignored():
    doc = parse_frontmatter("---\njust words\ntitle: T\n---\n")
    assert dict(doc.meta) == {"title": "T"}


def test_crlf_document():
    doc = parse_frontmatter("---\r\ntitle: Win\r\n---\r\nbody\r\n")
    assert doc.meta["title"] == "Win"
    assert doc.content == "body\r\n"


def test_meta_is_read_only():
    doc = parse_frontmatter("---\ntitle: T\n---\n")
    with pytest.raises(TypeError):
        doc.meta["title"] = "changed"
