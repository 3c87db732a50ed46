"""GIF page-URL discovery, identifier extraction and title derivation.

Discovery is a plain regex scan over the raw channel HTML, not a structural
parse.  Links can sit inside attributes, inline JSON or inline CSS, so the
scan is best effort: anything shaped like ``https://giphy.com/gifs/...`` is a
candidate, and candidates that do not yield a valid identifier are skipped
later rather than treated as errors.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Hashable, Iterable
from typing import TypeVar
from urllib.parse import urlparse

from gifgallery import settings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Hashable)

_PAGE_URL_RE = re.compile(
    r"https://"
    + re.escape(settings.PAGE_HOST)
    + "/"
    + re.escape(settings.COLLECTION_MARKER)
    + r"/[^\s\"'<>]+",
)
_TRAILING_PUNCT_RE = re.compile(r"[),.]+$")
_IDENTIFIER_RE = re.compile(r"[A-Za-z0-9]+")
_WHITESPACE_RE = re.compile(r"\s+")

_MARKER_PATH = f"/{settings.COLLECTION_MARKER}/"


def clean_url(raw: str) -> str:
    """Strip markup artifacts from a matched URL.

    Trailing ``)``, ``,`` and ``.`` come from inline CSS/JS context
    (``url(https://...)``, argument lists, sentences); ``&amp;`` is decoded.
    """
    return _TRAILING_PUNCT_RE.sub("", raw.strip()).replace("&amp;", "&")


def unique_keep_order(items: Iterable[T]) -> list[T]:
    """Return *items* without duplicates, keeping first occurrences in order."""
    seen: set[T] = set()
    out: list[T] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def is_page_url(url: str) -> bool:
    """Return True if *url* has something after the ``/gifs/`` marker."""
    _, marker, rest = url.partition(_MARKER_PATH)
    return bool(marker) and bool(rest.strip("/"))


def extract_page_urls(html: str) -> list[str]:
    """Return unique GIF page URLs found in *html*, in first-seen order.

    An empty list is a valid result; the caller decides whether zero
    GIFs is acceptable.
    """
    cleaned = (clean_url(m.group(0)) for m in _PAGE_URL_RE.finditer(html or ""))
    urls = unique_keep_order(u for u in cleaned if is_page_url(u))
    logger.debug("Found %d unique page URLs", len(urls))
    return urls


def last_path_segment(url: str) -> str | None:
    """Return the last non-empty path segment of *url* ("" if none, None if unparseable)."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    # urlparse is lenient; require an absolute URL like a browser URL() would
    if not parsed.scheme or not parsed.netloc:
        return None
    parts = [p for p in parsed.path.split("/") if p]
    return parts[-1] if parts else ""


def split_segment(url: str) -> tuple[str, str] | None:
    """Split the last path segment of *url* into ``(slug, candidate_id)``.

    The split happens at the *last* dash since slugs contain dashes
    themselves.  Without a dash the whole segment is both slug and id.
    A leading dash is not a separator for the slug, so ``-abc`` keeps
    ``-abc`` as its slug while its id is ``abc``.

    Returns None when *url* cannot be parsed as an absolute URL.
    """
    segment = last_path_segment(url)
    if segment is None:
        return None
    dash = segment.rfind("-")
    candidate = segment[dash + 1:] if dash >= 0 else segment
    slug = segment[:dash] if dash > 0 else segment
    return slug, candidate


def identifier_from_page_url(url: str) -> str | None:
    """Return the GIF id at the end of *url*, or None if there is no valid one."""
    parts = split_segment(url)
    if parts is None:
        return None
    candidate = parts[1]
    if not _IDENTIFIER_RE.fullmatch(candidate):
        return None
    return candidate


def title_from_page_url(url: str) -> str:
    """Derive a human-readable title from the slug of *url*.

    Example:
        https://giphy.com/gifs/funny-cat-dance-ABC123 -> funny cat dance

    Never raises; falls back to :data:`settings.DEFAULT_TITLE`.
    """
    parts = split_segment(url)
    if parts is None:
        return settings.DEFAULT_TITLE
    title = _WHITESPACE_RE.sub(" ", parts[0].replace("-", " ")).strip()
    return title or settings.DEFAULT_TITLE
