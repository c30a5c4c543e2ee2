"""
Configuration Package

Re-exports the centralized settings so callers can `from config import ...`.
"""

from .settings import (
    BASE_DIR,
    HOST,
    PORT,
    LOG_LEVEL,
    ANTHROPIC_API_KEY,
    DEFAULT_THRESHOLD,
    BROWSER_USER_AGENT,
    MarketplaceConfig,
    ImageConfig,
    ModelConfig,
    RateLimitConfig,
    Settings,
    MARKETPLACE,
    IMAGES,
    MODEL,
    RATE_LIMITS,
    load_settings,
)

__all__ = [
    'BASE_DIR',
    'HOST',
    'PORT',
    'LOG_LEVEL',
    'ANTHROPIC_API_KEY',
    'DEFAULT_THRESHOLD',
    'BROWSER_USER_AGENT',
    'MarketplaceConfig',
    'ImageConfig',
    'ModelConfig',
    'RateLimitConfig',
    'Settings',
    'MARKETPLACE',
    'IMAGES',
    'MODEL',
    'RATE_LIMITS',
    'load_settings',
]
