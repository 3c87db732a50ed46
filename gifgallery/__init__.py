"""gifgallery - snapshot a GIPHY channel into a static gallery manifest.

Quick usage::

    from gifgallery import fetch_manifest, write_manifest

    manifest = fetch_manifest("https://giphy.com/channel/perrysgifs")
    write_manifest(manifest, "data/gifs.json")

Offline (no network)::

    from gifgallery import build_manifest

    manifest = build_manifest(html, "https://giphy.com/channel/perrysgifs")
    for item in manifest.items:
        print(item.id, item.title, item.gif_url)
"""

from gifgallery.extractors.pageurls import (
    extract_page_urls,
    identifier_from_page_url,
    title_from_page_url,
)
from gifgallery.items import GalleryItem, Manifest
from gifgallery.manifest import (
    ManifestError,
    WriteError,
    build_manifest,
    filter_items,
    load_manifest,
    write_manifest,
)
from gifgallery.materialize import materialize
from gifgallery.query import FetchError, fetch_html, fetch_manifest

__version__ = "0.1.0"
__all__ = [
    "FetchError",
    "GalleryItem",
    "Manifest",
    "ManifestError",
    "WriteError",
    "build_manifest",
    "extract_page_urls",
    "fetch_html",
    "fetch_manifest",
    "filter_items",
    "identifier_from_page_url",
    "load_manifest",
    "materialize",
    "title_from_page_url",
    "write_manifest",
]
