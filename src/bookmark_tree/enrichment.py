"""Best-effort page title and favicon lookup."""

from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup
from loguru import logger

from bookmark_tree.config import TITLE_FETCH_TIMEOUT


def guess_title_from_url(url: str) -> str | None:
    """Return the capitalized host name without ``www.``, or None for unparseable URLs."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host:
        return None
    host = host.removeprefix("www.")
    return host[:1].upper() + host[1:]


def _is_fetchable(url: str) -> bool:
    return url.startswith(("http://", "https://"))


class TitleFetcher:
    """Fetch page titles and favicons over HTTP.

    Failures never raise; they are logged and reported as None so the caller
    keeps whatever value it already had.
    """

    def __init__(self, *, timeout: float = TITLE_FETCH_TIMEOUT) -> None:
        self.timeout = timeout
        self.sess = requests.Session()
        self.sess.headers["User-Agent"] = "bookmark-tree/0.1"

    def fetch_title(self, url: str) -> str | None:
        """Return the text of the page's <title>, or None."""
        if not _is_fetchable(url):
            return None
        try:
            r = self.sess.get(url, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            logger.debug("Could not fetch page title for {}: {}", url, e)
            return None

        tag = BeautifulSoup(r.text, "html.parser").find("title")
        if tag is None:
            return None
        title = " ".join(tag.get_text().split())
        return title or None

    def favicon_url(self, url: str) -> str | None:
        """Return ``<scheme>://<host>/favicon.ico`` if the site serves one."""
        if not _is_fetchable(url):
            return None
        parsed = urlparse(url)
        icon = f"{parsed.scheme}://{parsed.netloc}/favicon.ico"
        try:
            r = self.sess.head(icon, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            logger.debug("Could not fetch favicon for {}: {}", url, e)
            return None
        return icon if r.ok else None
