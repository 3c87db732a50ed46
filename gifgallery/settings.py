"""Project settings for gifgallery.

Every value here can be overridden by a YAML profile (see
:mod:`gifgallery.profiles`), a ``GIFGALLERY_*`` environment variable, or a
CLI flag, in increasing order of precedence.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Source channel
# ---------------------------------------------------------------------------
CHANNEL_URL = "https://giphy.com/channel/perrysgifs"

PAGE_HOST = "giphy.com"
COLLECTION_MARKER = "gifs"

# ---------------------------------------------------------------------------
# Media host URL convention (must match existing gallery consumers exactly)
# ---------------------------------------------------------------------------
MEDIA_BASE_URL = "https://media.giphy.com/media"
PREVIEW_FILENAME = "giphy_s.gif"
GIF_FILENAME = "giphy.gif"
STILL_FILENAME = "200.gif"

# Title used when a page URL carries no usable slug
DEFAULT_TITLE = "GIF"

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------
USER_AGENT = "perrysgifs-build/1.0 (+https://github.com/)"
ACCEPT = "text/html"

DOWNLOAD_TIMEOUT = 30

# The build itself does not retry; raise this for flaky networks.
RETRY_TIMES = 0
RETRY_HTTP_CODES = [429, 500, 502, 503, 504]

# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------
OUTPUT_PATH = "data/gifs.json"

LOG_LEVEL = "INFO"
