"""
Services Package

Application state, outbound clients, rate limiting and the exception
hierarchy. The FastAPI wiring lives in services.app_factory and
services.error_handler and is imported from there directly.
"""

from .app_state import AppState, get_app_state_from_request
from .rate_limiter import FixedDelayLimiter, RateLimits
from .exceptions import (
    CheckerException,
    ValidationError,
    InvalidRequestError,
    ConfigurationError,
    MissingAPIKeyError,
    ExternalServiceError,
    MarketplaceError,
    AnthropicAPIError,
    AnalysisError,
    AIResponseError,
)

__all__ = [
    # App state
    'AppState',
    'get_app_state_from_request',
    # Rate limiting
    'FixedDelayLimiter',
    'RateLimits',
    # Exceptions
    'CheckerException',
    'ValidationError',
    'InvalidRequestError',
    'ConfigurationError',
    'MissingAPIKeyError',
    'ExternalServiceError',
    'MarketplaceError',
    'AnthropicAPIError',
    'AnalysisError',
    'AIResponseError',
]
