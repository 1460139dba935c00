"""Popup engine constants.

Image extensions accepted for popup artwork, recency window for notices,
the suppression window and the content API endpoints.
"""

from datetime import timedelta

# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
# Matched as substrings of the lower-cased URL, not as suffixes.
IMAGE_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg")
NOTICE_MAX_AGE_DAYS: int = 5

# ---------------------------------------------------------------------------
# Suppression
# ---------------------------------------------------------------------------
SUPPRESSION_TTL: timedelta = timedelta(hours=8)
POPUP_COOKIE_NAME: str = "popup_seen"
POPUP_COOKIE_PATH: str = "/"
POPUP_COOKIE_SAMESITE: str = "lax"

# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------
SETTLE_DELAY_SECONDS: float = 0.5

# ---------------------------------------------------------------------------
# Content API paths (relative to CONTENT_API_URL)
# ---------------------------------------------------------------------------
NOTICES_PATH: str = "/api/notice/notices/"
NOTICES_PARAMS: dict[str, str] = {"status": "APPROVED", "pinned": "true"}
EVENTS_PATH: str = "/api/event/events/"
EVENTS_PARAMS: dict[str, str] = {"status": "APPROVED"}
