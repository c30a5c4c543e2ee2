"""
Custom Exception Hierarchy for the Counterfeit Checker

This module provides a structured exception hierarchy for error handling
and categorization throughout the application.

Usage:
    from services.exceptions import (
        CheckerException,
        MarketplaceError,
        InvalidRequestError,
    )

    try:
        items = decode_item_list(payload)
    except MarketplaceDecodeError as e:
        logger.warning(f"Marketplace payload rejected: {e}")
        return []
"""

from typing import Optional, Dict, Any


class CheckerException(Exception):
    """
    Base exception for all Counterfeit Checker errors.

    All custom exceptions inherit from this class so the HTTP layer can map
    them to status codes in one place.
    """

    def __init__(
        self,
        message: str,
        code: str = "CHECKER_ERROR",
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging and diagnostics."""
        result = {
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


# ============================================================
# Validation Errors
# ============================================================

class ValidationError(CheckerException):
    """Base class for request validation errors."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: str = "VALIDATION_ERROR",
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, code, details, cause)


class InvalidRequestError(ValidationError):
    """Analyze request body is missing, malformed or out of range."""

    def __init__(
        self,
        message: str = "Please provide at least one username",
        field: Optional[str] = "usernames",
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            field=field,
            code="INVALID_REQUEST",
            cause=cause,
        )


# ============================================================
# Configuration Errors
# ============================================================

class ConfigurationError(CheckerException):
    """Configuration is invalid or missing."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
    ):
        details = {}
        if config_key:
            details["config_key"] = config_key
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            details=details,
        )


class MissingAPIKeyError(ConfigurationError):
    """Required API key is missing."""

    def __init__(self, service: str = "anthropic"):
        super().__init__(
            message=f"{service.capitalize()} API key not configured",
            config_key=f"{service.upper()}_API_KEY",
        )
        self.code = "MISSING_API_KEY"


# ============================================================
# External Service Errors
# ============================================================

class ExternalServiceError(CheckerException):
    """Base class for external service errors."""

    def __init__(
        self,
        service: str,
        message: str,
        code: str = "EXTERNAL_SERVICE_ERROR",
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        details = details or {}
        details["service"] = service
        super().__init__(message, code, details, cause)


class MarketplaceError(ExternalServiceError):
    """Marketplace request failed or returned no usable data."""

    def __init__(
        self,
        message: str = "Marketplace request failed",
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        code: str = "MARKETPLACE_ERROR",
        cause: Optional[Exception] = None,
    ):
        details = {}
        if url:
            details["url"] = url
        if status_code:
            details["status_code"] = status_code
        super().__init__(
            service="marketplace",
            message=message,
            code=code,
            details=details,
            cause=cause,
        )


class MarketplaceDecodeError(MarketplaceError):
    """Marketplace API payload did not match the expected schema."""

    def __init__(
        self,
        resource: str,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message=f"Could not decode marketplace {resource} payload",
            code="MARKETPLACE_DECODE_ERROR",
            cause=cause,
        )
        self.details["resource"] = resource


class AnthropicAPIError(ExternalServiceError):
    """Error communicating with Anthropic API."""

    def __init__(
        self,
        message: str = "Anthropic API request failed",
        model: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        details = {}
        if model:
            details["model"] = model
        super().__init__(
            service="anthropic",
            message=message,
            code="ANTHROPIC_API_ERROR",
            details=details,
            cause=cause,
        )


# ============================================================
# Analysis Errors
# ============================================================

class AnalysisError(CheckerException):
    """Base class for analysis-related errors."""

    def __init__(
        self,
        message: str,
        code: str = "ANALYSIS_ERROR",
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, code, details, cause)


class AIResponseError(AnalysisError):
    """AI model returned a response with no parseable JSON object."""

    def __init__(
        self,
        model: str,
        reason: str = "empty or invalid response",
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message=f"AI model {model} returned {reason}",
            code="AI_RESPONSE_ERROR",
            details={"model": model, "reason": reason},
            cause=cause,
        )
