"""
API client initialization for external services.

Creates and configures the Anthropic (Claude) client and the shared httpx
client used for marketplace pages and listing images.
"""

import logging
from typing import Optional

import anthropic
import httpx

from config import MarketplaceConfig

logger = logging.getLogger(__name__)


def create_anthropic_client(api_key: Optional[str]) -> Optional[anthropic.AsyncAnthropic]:
    """
    Create an async Anthropic client for Claude API calls.

    Returns None if api_key is not provided; the analyze endpoint reports the
    missing credential per request instead of failing at startup.
    """
    if not api_key:
        logger.warning("[CLIENTS] No Anthropic API key provided")
        return None

    client = anthropic.AsyncAnthropic(api_key=api_key)
    logger.info("[CLIENTS] Anthropic client initialized")
    return client


def create_http_client(config: MarketplaceConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """Create the shared async HTTP client with desktop browser headers."""
    client = httpx.AsyncClient(
        headers=config.headers(),
        timeout=config.timeout,
        follow_redirects=True,
        transport=transport,
    )
    logger.info("[CLIENTS] HTTP client initialized")
    return client
