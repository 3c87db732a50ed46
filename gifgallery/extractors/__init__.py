"""Extraction sub-package: regex-based page-URL and identifier extraction."""

from .pageurls import (
    clean_url,
    extract_page_urls,
    identifier_from_page_url,
    is_page_url,
    last_path_segment,
    split_segment,
    title_from_page_url,
    unique_keep_order,
)

__all__ = [
    "clean_url",
    "extract_page_urls",
    "identifier_from_page_url",
    "is_page_url",
    "last_path_segment",
    "split_segment",
    "title_from_page_url",
    "unique_keep_order",
]
