# storefront/config/settings.py

"""Central configuration for the storefront catalog client."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the storefront catalog client."""

    # --- Remote service ---
    API_BASE_URL: str = os.getenv(
        "STOREFRONT_API_BASE_URL", "http://localhost:8000/api"
    )
    AUTH_TOKEN: str | None = os.getenv("STOREFRONT_AUTH_TOKEN") or None

    # --- Transport ---
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    MAX_RETRIES: int = 3                # GET attempts on transport failure
    RETRY_DELAY: float = 1.0            # Linear backoff step (secs)

    # --- Catalog ---
    QUERY_CACHE_TTL: float = 3 * 60 * 60  # Page cache lifetime (secs)
    NEW_ARRIVALS_LIMIT: int = 6         # Size of the "new" tab

    # --- Logging ---
    # Console threshold; the per-run file always records DEBUG
    LOG_CONSOLE_LEVEL: str = os.getenv("STOREFRONT_LOG_LEVEL", "WARNING")
    # Per-module thresholds, e.g. "storefront.catalog=INFO,storefront.cache=INFO"
    LOGGER_LEVELS: str = os.getenv("STOREFRONT_LOGGER_LEVELS", "")

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }

    # --- Endpoints (relative to API_BASE_URL) ---
    PRODUCTS_PATH: str = "/market/products/"
    CATEGORIES_PATH: str = "/market/categories/"
    CART_ADD_PATH: str = "/market/cart/add_item/"
    WISHLIST_PATH: str = "/market/wishlist/"
    WISHLIST_TOGGLE_PATH: str = "/market/wishlist/toggle_product/"

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    LOGS_DIR: Path = BASE_DIR / "logs"
