"""Fetch dictation documents shared on third-party file hosts."""

import logging
import re

import httpx

from dictee.constants import FETCH_TIMEOUT
from dictee.errors import FetchError

logger = logging.getLogger(__name__)

_DRIVE_ID_RE = re.compile(r"id=([-\w]{25,})|([-\w]{25,})")

ACCEPT_HEADER = "text/plain, text/markdown"


def _google_drive(url: str) -> str:
    match = _DRIVE_ID_RE.search(url)
    if not match:
        raise FetchError("Invalid Google Drive file id")
    file_id = match.group(1) or match.group(2)
    return f"https://drive.google.com/uc?export=download&id={file_id}"


def _github(url: str) -> str:
    if "github.com/gist/" in url or "gist.github.com/" in url:
        url = (
            url.replace("github.com/gist/", "gist.githubusercontent.com/")
            .replace("gist.github.com/", "gist.githubusercontent.com/")
            .replace("/blob/", "/")
        )
        if "/raw" not in url:
            url += "/raw"
        return url
    return url.replace("github.com/", "raw.githubusercontent.com/").replace("/blob/", "/")


def _codimd(url: str) -> str:
    url = url.rstrip("/")
    if "/download" not in url and "/raw" not in url:
        url += "/download"
    return url


def _nextcloud(url: str) -> str:
    if "/download" in url:
        return url
    return url.split("?")[0] + "/download"


def resolve_download_url(url: str) -> str:
    """Rewrite a share link into a URL that serves the raw document.

    Handles Google Drive, Dropbox, GitHub (files and gists), CodiMD/HedgeDoc
    and Nextcloud instances on apps.education.fr. Other URLs pass through.
    """
    if "drive.google.com" in url:
        return _google_drive(url)
    if "dropbox.com" in url:
        return url.replace("www.dropbox.com", "dl.dropboxusercontent.com")
    if "github.com" in url and "githubusercontent.com" not in url:
        return _github(url)
    if "codimd.apps.education.fr" in url or "hedgedoc" in url:
        return _codimd(url)
    if "apps.education.fr" in url:
        return _nextcloud(url)
    return url


class RemoteFetcher:
    """Remote Fetcher collaborator: locator in, document text out."""

    def __init__(self, *, timeout: float = FETCH_TIMEOUT, client: httpx.Client | None = None):
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def fetch(self, locator: str) -> str:
        url = resolve_download_url(locator)
        logger.info("Fetching %s", url)
        try:
            resp = self._client.get(url, headers={"Accept": ACCEPT_HEADER})
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"Fetch failed for {url}: {exc.response.status_code} {exc.response.reason_phrase}"
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Fetch failed for {url}: {exc}") from exc
        return resp.text

    def close(self) -> None:
        self._client.close()
