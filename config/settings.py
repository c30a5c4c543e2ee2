"""
Centralized Configuration Settings for the Counterfeit Checker

All configuration values are consolidated here for easy management.
Values are read from the environment (and an optional .env file) once at import.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

# ============================================================
# ENVIRONMENT LOADING
# ============================================================
BASE_DIR = Path(__file__).parent.parent
ENV_PATH = BASE_DIR / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH)


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


# ============================================================
# SERVER SETTINGS
# ============================================================
HOST = os.getenv("HOST", "127.0.0.1")
PORT = _env_int("PORT", 8000)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ============================================================
# API KEYS & CREDENTIALS
# ============================================================
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
if ANTHROPIC_API_KEY == "YOUR_API_KEY_HERE":
    ANTHROPIC_API_KEY = None

# ============================================================
# ANALYSIS DEFAULTS
# ============================================================
DEFAULT_THRESHOLD = 50

# Desktop browser identity sent with every marketplace request
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
BROWSER_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
BROWSER_ACCEPT_LANGUAGE = "en-US,en;q=0.5"


# ============================================================
# DATACLASS CONFIGS
# ============================================================
@dataclass
class MarketplaceConfig:
    """SidelineSwap endpoints and scraping limits"""
    base_url: str = "https://sidelineswap.com"
    api_base_url: str = os.getenv("MARKETPLACE_API_URL", "https://api.sidelineswap.com/v1")
    category_filters: Tuple[str, ...] = ("hockey-sticks",)

    # Storefront scraping keeps only titles matching one of these (case-insensitive)
    keywords: Tuple[str, ...] = (
        "hockey", "stick", "bauer", "ccm", "warrior", "true", "sherwood", "easton",
    )

    timeout: float = _env_float("MARKETPLACE_TIMEOUT", 15.0)
    max_listings: int = _env_int("MAX_LISTINGS", 12)   # Cap per seller before enrichment
    enrich_limit: int = _env_int("ENRICH_LIMIT", 10)   # Detail lookups per seller
    max_description_chars: int = 1000
    max_title_chars: int = 200

    user_agent: str = BROWSER_USER_AGENT
    accept: str = BROWSER_ACCEPT
    accept_language: str = BROWSER_ACCEPT_LANGUAGE

    def headers(self) -> dict:
        return {
            "User-Agent": self.user_agent,
            "Accept": self.accept,
            "Accept-Language": self.accept_language,
        }


@dataclass
class ImageConfig:
    """Settings for listing image fetching"""
    max_images: int = 4               # Images sent to the model per listing
    timeout: float = 10.0             # Per-image timeout

    # Anthropic limit is 5MB for BASE64 encoded data (~33% overhead over raw)
    max_raw_bytes: int = 3_500_000
    max_base64_bytes: int = 5_000_000


@dataclass
class ModelConfig:
    """Vision model used for counterfeit assessment"""
    model: str = os.getenv("ASSESSMENT_MODEL", "claude-sonnet-4-20250514")
    max_tokens: int = 500


@dataclass
class RateLimitConfig:
    """Fixed delays (seconds) before calls to each external dependency"""
    marketplace_delay: float = _env_float("MARKETPLACE_DELAY", 1.0)
    model_delay: float = _env_float("MODEL_DELAY", 1.0)
    seller_delay: float = _env_float("SELLER_DELAY", 1.0)


@dataclass
class Settings:
    """Everything the pipeline needs, bundled for injection"""
    api_key: Optional[str] = None
    default_threshold: int = DEFAULT_THRESHOLD
    marketplace: MarketplaceConfig = field(default_factory=MarketplaceConfig)
    images: ImageConfig = field(default_factory=ImageConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    rate_limits: RateLimitConfig = field(default_factory=RateLimitConfig)


MARKETPLACE = MarketplaceConfig()
IMAGES = ImageConfig()
MODEL = ModelConfig()
RATE_LIMITS = RateLimitConfig()


def load_settings() -> Settings:
    """Build Settings from the environment-backed module values."""
    return Settings(
        api_key=ANTHROPIC_API_KEY,
        default_threshold=DEFAULT_THRESHOLD,
        marketplace=MARKETPLACE,
        images=IMAGES,
        model=MODEL,
        rate_limits=RATE_LIMITS,
    )
