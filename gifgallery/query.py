"""gifgallery.query - channel fetch API.

Uses only the stdlib (``urllib``) for HTTP.

Basic usage::

    from gifgallery.query import fetch_manifest

    manifest = fetch_manifest("https://giphy.com/channel/perrysgifs")
    print(manifest.count)

Low-level access::

    from gifgallery.query import fetch_html
    from gifgallery.manifest import build_manifest

    html = fetch_html("https://giphy.com/channel/perrysgifs")
    manifest = build_manifest(html, "https://giphy.com/channel/perrysgifs")
"""

from __future__ import annotations

import gzip
import logging
import random
import time
import urllib.error
import urllib.request
import zlib
from typing import Any
from urllib.parse import urlparse

from gifgallery import settings
from gifgallery.items import Manifest
from gifgallery.manifest import build_manifest

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public exception
# ---------------------------------------------------------------------------

class FetchError(RuntimeError):
    """Raised when the channel page cannot be retrieved.

    Attributes:
        url    -- the URL that failed
        status -- HTTP status code (0 if no response was received)
    """

    def __init__(
        self,
        message: str,
        url: str = "",
        status: int = 0,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status = status
        self.body = body


def _decode_response_body(raw: bytes, headers: Any, url: str) -> str:
    encoding = ""
    if headers is not None:
        try:
            encoding = str(headers.get("Content-Encoding", "")).lower().strip()
        except Exception:
            encoding = ""

    try:
        if encoding == "gzip":
            raw = gzip.decompress(raw)
        elif encoding in ("deflate", "zlib"):
            raw = zlib.decompress(raw)
    except (OSError, zlib.error) as exc:
        raise FetchError(f"{encoding} decompression failed for {url}: {exc}", url=url) from exc

    charset = "utf-8"
    if headers is not None:
        try:
            charset = headers.get_content_charset("utf-8") or "utf-8"
        except Exception:
            charset = "utf-8"
    try:
        return raw.decode(charset, errors="replace")
    except (LookupError, ValueError):
        return raw.decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Low-level HTTP fetch
# ---------------------------------------------------------------------------

def fetch_html(
    url: str,
    *,
    timeout: int = settings.DOWNLOAD_TIMEOUT,
    user_agent: str | None = None,
    max_retries: int = settings.RETRY_TIMES,
) -> str:
    """Fetch *url* and return the response body as a decoded string.

    Sends a descriptive ``User-Agent`` and ``Accept: text/html``.  With
    *max_retries* > 0, retries with jittered exponential backoff on
    transient errors (429, 5xx, and network-level failures).

    Args:
        url:         Fully-qualified HTTP/HTTPS URL.
        timeout:     Request timeout in seconds.
        user_agent:  Override the default build User-Agent string.
        max_retries: Maximum number of retry attempts (default 0).

    Returns:
        Response body decoded to ``str``.

    Raises:
        FetchError: On HTTP errors, connection failures, or invalid URLs.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise FetchError(f"Unsupported URL scheme: {parsed.scheme!r}", url=url)

    req = urllib.request.Request(
        url,
        headers={
            "User-Agent": user_agent or settings.USER_AGENT,
            "Accept": settings.ACCEPT,
            "Accept-Encoding": "gzip, deflate",
        },
    )

    last_exc: FetchError | None = None
    for attempt in range(max_retries + 1):
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                return _decode_response_body(resp.read(), resp.headers, url)

        except urllib.error.HTTPError as exc:
            body_text = ""
            try:
                raw = exc.read()
                if raw:
                    body_text = _decode_response_body(raw, exc.headers, url)
            except Exception:
                body_text = ""
            last_exc = FetchError(
                f"Failed to fetch channel HTML ({exc.code}): {url} {exc.reason}",
                url=url,
                status=exc.code,
                body=body_text,
            )
            if exc.code in settings.RETRY_HTTP_CODES and attempt < max_retries:
                retry_after = 0
                ra_header = exc.headers.get("Retry-After", "") if exc.headers else ""
                if ra_header and ra_header.strip().isdigit():
                    retry_after = int(ra_header)
                delay = max(retry_after, 2 ** attempt) + random.uniform(0, 1)
                logger.debug(
                    "HTTP %d for %s, retrying in %.1fs (attempt %d/%d)",
                    exc.code, url, delay, attempt + 1, max_retries,
                )
                time.sleep(delay)
                continue
            raise last_exc from exc

        except urllib.error.URLError as exc:
            last_exc = FetchError(f"URL error fetching {url}: {exc.reason}", url=url)
            if attempt < max_retries:
                delay = (2 ** attempt) + random.uniform(0, 1)
                logger.debug(
                    "URL error for %s, retrying in %.1fs (attempt %d/%d): %s",
                    url, delay, attempt + 1, max_retries, exc.reason,
                )
                time.sleep(delay)
                continue
            raise last_exc from exc

        except OSError as exc:
            last_exc = FetchError(f"Network error fetching {url}: {exc}", url=url)
            if attempt < max_retries:
                delay = (2 ** attempt) + random.uniform(0, 1)
                logger.debug(
                    "Network error for %s, retrying in %.1fs (attempt %d/%d): %s",
                    url, delay, attempt + 1, max_retries, exc,
                )
                time.sleep(delay)
                continue
            raise last_exc from exc

    raise last_exc or FetchError(f"All retries exhausted for {url}", url=url)


# ---------------------------------------------------------------------------
# Fetch + build
# ---------------------------------------------------------------------------

def fetch_manifest(
    url: str = settings.CHANNEL_URL,
    *,
    timeout: int = settings.DOWNLOAD_TIMEOUT,
    user_agent: str | None = None,
    max_retries: int = settings.RETRY_TIMES,
) -> Manifest:
    """Fetch the channel page at *url* and build its manifest.

    Raises:
        FetchError: If the page cannot be retrieved.
    """
    logger.info("Fetching channel: %s", url)
    html = fetch_html(url, timeout=timeout, user_agent=user_agent, max_retries=max_retries)
    return build_manifest(html, url)
