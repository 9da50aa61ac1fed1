"""
tests/test_sources.py
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest
import requests

from berozgaar.blog import (
    DirectorySource,
    FetchError,
    HttpSource,
    NotFound,
    source_from_config,
)


# ───────────────────────── helpers ──────────────────────────────────
def _response(status: int, body: bytes = b"", content_type: str = "text/plain") -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = body
    resp.headers["Content-Type"] = content_type
    resp.url = "https://origin.test/x"
    return resp


class _Session:
    def __init__(self, result):
        self.result = result
        self.requests: list[tuple[str, float]] = []

    def get(self, url, timeout=None):
        self.requests.append((url, timeout))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


# ───────────────────────── HTTP ─────────────────────────────────────
def test_http_source_joins_url_and_decodes_utf8():
    session = _Session(_response(200, "# Café".encode(), "text/markdown"))
    src = HttpSource("https://origin.test/", timeout=3, session=session)
    assert src.fetch_text("/content/blog/x.md") == "# Café"
    assert session.requests == [("https://origin.test/content/blog/x.md", 3)]


def test_http_source_404_is_not_found():
    src = HttpSource("https://origin.test", session=_Session(_response(404)))
    with pytest.raises(NotFound) as exc_info:
        src.fetch_text("/posts.json")
    assert exc_info.value.status == 404


def test_http_source_other_status_is_fetch_error():
    src = HttpSource("https://origin.test", session=_Session(_response(503)))
    with pytest.raises(FetchError) as exc_info:
        src.fetch_text("/posts.json")
    assert exc_info.value.status == 503
    assert not isinstance(exc_info.value, NotFound)


def test_http_source_connection_error():
    src = HttpSource(
        "https://origin.test",
        session=_Session(requests.ConnectionError("refused")),
    )
    with pytest.raises(FetchError) as exc_info:
        src.fetch_text("/posts.json")
    assert exc_info.value.status is None


def test_http_source_quotes_path():
    session = _Session(_response(200, b"ok"))
    src = HttpSource("https://origin.test", session=session)
    src.fetch_text("/content/blog/a?b#c.md")
    assert session.requests[0][0] == "https://origin.test/content/blog/a%3Fb%23c.md"


def test_http_source_session_per_thread():
    src = HttpSource("https://origin.test")
    with ThreadPoolExecutor(max_workers=2) as pool:
        other = pool.submit(lambda: src.session).result()
    assert src.session is src.session
    assert other is not src.session

    shared = requests.Session()
    assert HttpSource("https://origin.test", session=shared).session is shared


# ───────────────────────── directory ────────────────────────────────
def test_directory_source_reads_files(tmp_path):
    (tmp_path / "templates").mkdir()
    (tmp_path / "templates" / "header.html").write_text("<header>ह</header>", encoding="utf-8")
    assert DirectorySource(tmp_path).fetch_text("/templates/header.html") == "<header>ह</header>"


@pytest.mark.parametrize(
    "path",
    ["/missing.md", "/templates", "/../outside.txt", "/" + "a" * 300 + ".md", "/a\x00b.md"],
)
def test_directory_source_not_found(tmp_path, path):
    (tmp_path / "templates").mkdir()
    (tmp_path.parent / "outside.txt").write_text("secret")
    with pytest.raises(NotFound):
        DirectorySource(tmp_path).fetch_text(path)


def test_source_from_config_prefers_url(tmp_path):
    src = source_from_config({"CONTENT_URL": "https://origin.test", "CONTENT_DIR": str(tmp_path)})
    assert isinstance(src, HttpSource)
    src = source_from_config({"CONTENT_URL": "", "CONTENT_DIR": str(tmp_path)})
    assert isinstance(src, DirectorySource)
    assert src.root == tmp_path.resolve()
