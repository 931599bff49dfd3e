# src/config/settings.py

"""Central configuration for the GearZone discovery engine."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the GearZone discovery engine."""

    # --- Catalog ---
    PAGE_LIMIT: int = 50                # Max products per catalog fetch
    ALL_CATEGORIES: str = "All"         # Category sentinel (no filtering)

    # --- Banners ---
    BANNER_COUNT: int = 3
    BANNER_DISCOUNT_THRESHOLD: float = 100.0
    BANNER_PLACEHOLDER_IMAGE: str = (
        "https://via.placeholder.com/300x150?text=GearZone"
    )
    BANNER_DISCOUNT_SUBTITLE: str = "Up to 30% off - shop now"
    BANNER_DEFAULT_SUBTITLE: str = "Limited time offer"

    # --- Filtering ---
    SORT_OPTIONS: list[str] = [
        "featured",
        "newest",
        "price-low",
        "price-high",
        "rating",
    ]
    DEFAULT_SORT: str = "featured"
    DEFAULT_PRICE_RANGE: tuple[float, float] = (0.0, float("inf"))
    MAX_RATING: float = 5.0

    # --- Ratings ---
    REVIEW_QUERY_TIMEOUT: float = 10.0  # Seconds per review sub-query

    # --- Notifications ---
    NOTIFICATION_SYNC_TIMEOUT: float = 5.0

    # --- Payments ---
    PAYMENT_API_URL: str = os.getenv(
        "GEARZONE_PAYMENT_API_URL", "http://localhost:4242/api"
    )
    PAYMENT_TIMEOUT: int = 15           # Seconds before a request times out
    PAYMENT_MAX_RETRIES: int = 3        # Attempts on 503 / transport errors
    PAYMENT_RETRY_DELAY: float = 1.0    # Base backoff between attempts
    PAYMENT_MIN_AMOUNT_CENTS: int = 50
    SUPPORTED_CURRENCIES: list[str] = ["usd", "eur", "gbp", "cad", "aud"]

    # --- HTTP client ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Content-Type": "application/json",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SEED_DATA_PATH: Path = BASE_DIR / "data" / "catalog.json"
    LOGS_DIR: Path = BASE_DIR / "logs"
