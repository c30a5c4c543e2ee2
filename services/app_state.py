"""
Application State Management for the Counterfeit Checker

Holds the settings, the shared outbound clients and the rate limiters in one
dataclass that is injected into the FastAPI app. Tests build an AppState with
mock clients; the lifespan handler creates real ones when none were given.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
import logging

import anthropic
import httpx

from config import Settings, load_settings
from services.clients import create_anthropic_client, create_http_client
from services.rate_limiter import RateLimits

logger = logging.getLogger(__name__)


def _new_stats() -> Dict[str, Any]:
    return {
        "total_requests": 0,
        "sellers_processed": 0,
        "listings_assessed": 0,
        "results_returned": 0,
        "session_start": datetime.now().isoformat(),
    }


@dataclass
class AppState:
    """
    Centralized application state.

    Clients passed in at construction are owned by the caller and never
    closed here; clients created by open_clients() are closed on shutdown.
    """

    settings: Settings = field(default_factory=load_settings)
    http_client: Optional[httpx.AsyncClient] = None
    anthropic_client: Optional[anthropic.AsyncAnthropic] = None
    rate_limits: Optional[RateLimits] = None

    _owns_http_client: bool = field(default=False, repr=False)

    # Session statistics
    stats: Dict[str, Any] = field(default_factory=_new_stats)

    def __post_init__(self):
        if self.rate_limits is None:
            self.rate_limits = RateLimits.from_config(self.settings.rate_limits)
        if self.anthropic_client is None:
            self.anthropic_client = create_anthropic_client(self.settings.api_key)

    @property
    def model_configured(self) -> bool:
        return self.anthropic_client is not None

    def open_clients(self) -> None:
        """Create the shared HTTP client if one was not injected."""
        if self.http_client is None:
            self.http_client = create_http_client(self.settings.marketplace)
            self._owns_http_client = True

    async def close_clients(self) -> None:
        if self._owns_http_client and self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None
            self._owns_http_client = False
            logger.info("[STATE] HTTP client closed")

    def increment_stat(self, key: str, amount: int = 1) -> None:
        """Safely increment a statistics counter."""
        if key in self.stats:
            self.stats[key] += amount

    def get_session_duration(self) -> float:
        """Get session duration in seconds."""
        start = datetime.fromisoformat(self.stats["session_start"])
        return (datetime.now() - start).total_seconds()


# ============================================================
# FastAPI Dependency Injection Helpers
# ============================================================

def get_app_state_from_request(request) -> "AppState":
    """
    Get AppState from request.

    Usage in routes:
        from services.app_state import get_app_state_from_request

        @router.post("/endpoint")
        async def endpoint(request: Request):
            app_state = get_app_state_from_request(request)
            app_state.increment_stat("total_requests")
    """
    return request.app.state.app_state
