"""Tests for page title and favicon lookup."""

from unittest.mock import MagicMock, patch

import requests

from bookmark_tree.enrichment import TitleFetcher, guess_title_from_url


def test_guess_title_from_url() -> None:
    assert guess_title_from_url("https://www.github.com/foo") == "Github.com"
    assert guess_title_from_url("https://docs.python.org") == "Docs.python.org"
    assert guess_title_from_url("not a url") is None


def _response(text: str = "", *, ok: bool = True) -> MagicMock:
    resp = MagicMock()
    resp.text = text
    resp.ok = ok
    if not ok:
        resp.raise_for_status.side_effect = requests.HTTPError("404")
    return resp


def test_fetch_title_extracts_title() -> None:
    fetcher = TitleFetcher()
    page = "<html><head><TITLE>\n  Rust &amp; Friends\n</TITLE></head></html>"
    with patch.object(fetcher.sess, "get", return_value=_response(page)) as get:
        assert fetcher.fetch_title("https://rust.test") == "Rust & Friends"
    get.assert_called_once_with("https://rust.test", timeout=fetcher.timeout)


def test_fetch_title_ignores_commented_out_title() -> None:
    fetcher = TitleFetcher()
    page = "<head><!-- <title>Old draft</title> --><title>Real Title</title></head>"
    with patch.object(fetcher.sess, "get", return_value=_response(page)):
        assert fetcher.fetch_title("https://draft.test") == "Real Title"


def test_fetch_title_without_title_tag() -> None:
    fetcher = TitleFetcher()
    with patch.object(fetcher.sess, "get", return_value=_response("<html></html>")):
        assert fetcher.fetch_title("https://empty.test") is None


def test_fetch_title_swallows_http_errors() -> None:
    fetcher = TitleFetcher()
    with patch.object(fetcher.sess, "get", return_value=_response(ok=False)):
        assert fetcher.fetch_title("https://missing.test") is None


def test_fetch_title_swallows_connection_errors() -> None:
    fetcher = TitleFetcher()
    with patch.object(fetcher.sess, "get", side_effect=requests.ConnectionError("down")):
        assert fetcher.fetch_title("https://down.test") is None


def test_fetch_title_skips_non_http_urls() -> None:
    fetcher = TitleFetcher()
    with patch.object(fetcher.sess, "get") as get:
        assert fetcher.fetch_title("javascript:alert(1)") is None
    get.assert_not_called()


def test_favicon_url() -> None:
    fetcher = TitleFetcher()
    with patch.object(fetcher.sess, "head", return_value=_response()) as head:
        assert fetcher.favicon_url("https://site.test/page?q=1") == "https://site.test/favicon.ico"
    head.assert_called_once_with(
        "https://site.test/favicon.ico", timeout=fetcher.timeout, allow_redirects=True
    )


def test_favicon_url_missing() -> None:
    fetcher = TitleFetcher()
    with patch.object(fetcher.sess, "head", return_value=_response(ok=False)):
        assert fetcher.favicon_url("https://site.test") is None
