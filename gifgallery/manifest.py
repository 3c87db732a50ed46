"""Manifest building, writing and reading.

Build pipeline (pure, single pass)::

    html -> page URLs -> ids (deduplicated) -> gallery items -> Manifest

Nothing in :func:`build_manifest` raises for odd input: candidates without a
valid id are skipped and an empty manifest is a valid outcome.  Only the
file-system boundary raises (:class:`WriteError`, :class:`ManifestError`).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from pathlib import Path

from gifgallery.extractors.pageurls import (
    extract_page_urls,
    identifier_from_page_url,
    last_path_segment,
    unique_keep_order,
)
from gifgallery.items import GalleryItem, Manifest, coerce_item
from gifgallery.materialize import canonical_page_url, materialize

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class WriteError(RuntimeError):
    """Raised when the manifest cannot be persisted.

    Attributes:
        path -- the destination that could not be written
    """

    def __init__(self, message: str, path: str | Path = "") -> None:
        super().__init__(message)
        self.path = str(path)


class ManifestError(RuntimeError):
    """Raised when a manifest file is missing or is not valid JSON."""

    def __init__(self, message: str, path: str | Path = "") -> None:
        super().__init__(message)
        self.path = str(path)


# ---------------------------------------------------------------------------
# Building
# ---------------------------------------------------------------------------

def select_page_url(gif_id: str, page_urls: Sequence[str]) -> str:
    """Pick the source page URL for *gif_id* out of *page_urls*.

    Prefers a URL whose parsed id is exactly *gif_id*.  Failing that, the
    first URL whose last path segment ends with or contains ``-<id>`` is
    used, and if nothing matches a canonical URL is synthesized.
    """
    for url in page_urls:
        if identifier_from_page_url(url) == gif_id:
            return url

    suffix = f"-{gif_id}"
    for url in page_urls:
        segment = last_path_segment(url)
        if segment and (segment.endswith(suffix) or suffix in segment):
            return url

    return canonical_page_url(gif_id)


def build_items(html: str) -> list[GalleryItem]:
    """Extract, deduplicate and materialize every GIF linked from *html*."""
    page_urls = extract_page_urls(html)

    ids: list[str] = []
    for url in page_urls:
        gif_id = identifier_from_page_url(url)
        if gif_id is None:
            logger.debug("Skipping page URL without a valid id: %s", url)
            continue
        ids.append(gif_id)

    # Distinct URLs can still decode to the same id.
    unique_ids = unique_keep_order(ids)
    if len(unique_ids) < len(ids):
        logger.debug("Collapsed %d duplicate ids", len(ids) - len(unique_ids))

    return [materialize(gif_id, select_page_url(gif_id, page_urls)) for gif_id in unique_ids]


def build_manifest(
    html: str,
    source_label: str,
    *,
    built_at: datetime | None = None,
) -> Manifest:
    """Build a :class:`Manifest` from raw channel HTML.

    Args:
        html:         Channel page HTML.
        source_label: Recorded as the manifest's ``channel``.
        built_at:     Build timestamp (default: now, UTC).
    """
    items = build_items(html)
    manifest = Manifest(
        source=source_label,
        built_at=built_at or datetime.now(UTC),
        count=len(items),
        items=tuple(items),
    )
    logger.info("Built manifest for %s with %d GIFs", source_label, manifest.count)
    return manifest


def filter_items(items: Iterable[GalleryItem], query: str) -> list[GalleryItem]:
    """Case-insensitive substring search over title, id and page URL."""
    needle = (query or "").lower().strip()
    if not needle:
        return list(items)
    return [
        item for item in items
        if needle in f"{item.title} {item.id} {item.page_url}".lower().strip()
    ]


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

def write_manifest(manifest: Manifest, path: str | Path) -> Path:
    """Write *manifest* as pretty-printed JSON, replacing *path* atomically.

    Raises:
        WriteError: If the directory or file cannot be written.
    """
    path = Path(path)
    text = json.dumps(manifest.to_json_dict(), indent=2, ensure_ascii=False)
    tmp_name = ""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            handle.write(text)
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name:
            Path(tmp_name).unlink(missing_ok=True)
        raise WriteError(f"Could not write manifest to {path}: {exc}", path=path) from exc

    logger.info("Wrote %s with %d GIFs", path, manifest.count)
    return path


def load_manifest(path: str | Path) -> Manifest:
    """Read a manifest the way the gallery page does.

    A non-list ``gifs`` is treated as empty, a missing ``builtAt`` as
    unknown, and malformed or repeated entries are dropped.  ``count`` is
    recomputed from the surviving items.  Unlike the browser gallery, a
    repeated id keeps only its first entry, since :class:`Manifest`
    requires unique ids.

    Raises:
        ManifestError: If the file is absent or is not a JSON object.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ManifestError(f"Manifest not found: {path}", path=path) from exc
    except (OSError, ValueError) as exc:
        raise ManifestError(f"Could not read manifest {path}: {exc}", path=path) from exc

    if not isinstance(data, dict):
        raise ManifestError(f"Manifest {path} is not a JSON object", path=path)

    raw_items = data.get("gifs")
    if not isinstance(raw_items, list):
        raw_items = []

    items: list[GalleryItem] = []
    seen: set[str] = set()
    for raw in raw_items:
        item = coerce_item(raw)
        if item is None or item.id in seen:
            continue
        seen.add(item.id)
        items.append(item)

    built_at = _parse_timestamp(data.get("builtAt"))
    return Manifest(
        source=str(data.get("channel") or ""),
        built_at=built_at,
        count=len(items),
        items=tuple(items),
    )


def _parse_timestamp(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Ignoring unparseable builtAt %r", value)
        return None
