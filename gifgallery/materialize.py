"""Turn a GIF id into a full :class:`GalleryItem`.

Media URLs follow the media host's fixed convention::

    https://media.giphy.com/media/<id>/giphy_s.gif   preview
    https://media.giphy.com/media/<id>/giphy.gif     full animation
    https://media.giphy.com/media/<id>/200.gif       still frame

``media.giphy.com`` is the canonical host and redirects as needed.
"""

from __future__ import annotations

from gifgallery import settings
from gifgallery.extractors.pageurls import title_from_page_url
from gifgallery.items import GalleryItem


def media_urls(gif_id: str) -> dict[str, str]:
    base = f"{settings.MEDIA_BASE_URL}/{gif_id}"
    return {
        "preview_url": f"{base}/{settings.PREVIEW_FILENAME}",
        "gif_url": f"{base}/{settings.GIF_FILENAME}",
        "still_url": f"{base}/{settings.STILL_FILENAME}",
    }


def canonical_page_url(gif_id: str) -> str:
    return f"https://{settings.PAGE_HOST}/{settings.COLLECTION_MARKER}/{gif_id}"


def materialize(gif_id: str, page_url: str | None = None) -> GalleryItem:
    """Return the gallery item for *gif_id*.

    *page_url* is used as-is when given; otherwise a canonical page URL is
    synthesized from the id.  The title always comes from whichever page
    URL was chosen.

    *gif_id* must already be a valid id (``[A-Za-z0-9]+``), as returned by
    :func:`~gifgallery.extractors.pageurls.identifier_from_page_url`; for
    such ids this never fails.  Any other value is rejected by the
    :class:`GalleryItem` validator with a ``ValidationError``.
    """
    url = page_url or canonical_page_url(gif_id)
    return GalleryItem(
        id=gif_id,
        page_url=url,
        title=title_from_page_url(url),
        **media_urls(gif_id),
    )
