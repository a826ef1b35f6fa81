import logging
import os
from typing import Dict, List

logger = logging.getLogger(__name__)

# --- Booker / Piedmont Springs ---
LOCATION_ID = int(os.environ.get("PIEDMONT_LOCATION_ID", "49414"))
LOCATION_SLUG = os.environ.get("PIEDMONT_LOCATION_SLUG", "PiedmontSprings")
BASE_API_URL = os.environ.get("BOOKER_API_URL", "https://api.booker.com")
BOOKING_SITE_BASE = "https://go.booker.com"
BOOKING_URL = f"{BOOKING_SITE_BASE}/location/{LOCATION_SLUG}"

# API Management subscription key shipped with the public booking app
SUBSCRIPTION_KEY = os.environ.get("BOOKER_SUBSCRIPTION_KEY", "b8c686e771ac4e4a8173d8177e4e1c8c")

# --- Service selection ---
TARGET_SERVICE_KEYWORDS: List[str] = ["sauna", "steam", "hot tub", "combination"]

# Display priority: one hour sessions first, 30 minute sessions last
SERVICE_CONFIG: List[Dict[str, str]] = [
    {"name": "One Hour Combination Room", "icon": "✨"},
    {"name": "One Hour Hot Tub", "icon": "🛁"},
    {"name": "45 Minute Sauna", "icon": "🔥"},
    {"name": "45 Minute Steam", "icon": "💨"},
    {"name": "30 Minute Sauna", "icon": "🔥"},
    {"name": "30 Minute Steam", "icon": "💨"},
]

# Section headings keyed by index into SERVICE_CONFIG
SECTION_TITLES: Dict[int, str] = {
    0: "One Hour Sessions",
    2: "45 Minute Sessions",
    4: "30 Minute Sessions",
}

# --- Date range ---
TIMEZONE = os.environ.get("PIEDMONT_TIMEZONE", "America/Los_Angeles")
DEFAULT_DAYS = 30
MIN_DAYS = 1
MAX_DAYS = 60

# --- Token handling ---
# Tokens appear to live ~4 hours upstream; nothing documents this.
TOKEN_CACHE_SECONDS = int(os.environ.get("TOKEN_CACHE_SECONDS", str(3 * 60 * 60)))
# Out-of-band tokens may already be hours old when we first see them.
EXTERNAL_TOKEN_CACHE_SECONDS = int(os.environ.get("EXTERNAL_TOKEN_CACHE_SECONDS", str(60 * 60)))
EXTERNAL_TOKEN_ENV = "BOOKER_TOKEN"

# --- Browser ---
USER_AGENT = os.environ.get(
    "SCRAPER_USER_AGENT",
    (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
)
HEADLESS = os.environ.get("BROWSER_HEADLESS", "1") != "0"
NAVIGATION_TIMEOUT_MS = int(os.environ.get("NAVIGATION_TIMEOUT_MS", "15000"))
TOKEN_POLL_INTERVAL_MS = 500
TOKEN_POLL_ATTEMPTS = int(os.environ.get("TOKEN_POLL_ATTEMPTS", "10"))

# --- HTTP ---
REQUEST_TIMEOUT_SECONDS = int(os.environ.get("REQUEST_TIMEOUT_SECONDS", "15"))

# Headers to mimic the booking web app
COMMON_HEADERS: Dict[str, str] = {
    "User-Agent": USER_AGENT,
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": os.environ.get("SCRAPER_ACCEPT_LANGUAGE", "en-US,en;q=0.9"),
    "Referer": f"{BOOKING_SITE_BASE}/",
    "Origin": BOOKING_SITE_BASE,
}

# --- Inbound endpoint ---
# CDN keeps a response for an hour and may serve it stale for four more while revalidating
CACHE_CONTROL = "public, s-maxage=3600, stale-while-revalidate=14400"

if not os.environ.get(EXTERNAL_TOKEN_ENV):
    logger.debug(f"{EXTERNAL_TOKEN_ENV} not set. Tokens will be acquired with a headless browser.")
