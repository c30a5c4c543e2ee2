"""
Counterfeit Assessor

Sends a listing's images and details to a vision-capable Claude model and
normalizes the verdict into an AssessmentResult.

The model is asked for JSON only, but its output is untrusted: the first
brace-delimited block is parsed, the confidence is clamped to 0-100 and
anything unparseable becomes a zero-confidence result. assess() never raises.
"""

import json
import logging
import math
import re
from typing import Any, Dict, List, Optional

import anthropic
import httpx

from config import ImageConfig, ModelConfig
from services.exceptions import (
    AIResponseError,
    AnthropicAPIError,
    CheckerException,
    MissingAPIKeyError,
)
from pipeline.image_fetcher import fetch_listing_images
from pipeline.models import AssessmentResult, Listing
from pipeline.prompts import build_counterfeit_prompt

logger = logging.getLogger(__name__)

JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
PARSE_FAILURE_REASON = "Could not parse analysis response"
DEFAULT_REASON = "Unable to determine"


def normalize_confidence(value: Any) -> int:
    """Clamp a model-supplied confidence into 0-100; non-numeric -> 0."""
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return 0
    except OverflowError:
        # Integers too large for a float
        return 100 if value > 0 else 0
    if math.isnan(numeric):
        return 0
    return int(round(min(100.0, max(0.0, numeric))))


def extract_json_object(text: str, model: str = "unknown") -> Dict[str, Any]:
    """
    Parse the brace-delimited JSON object out of raw model text.

    Raises AIResponseError when there is no object or it does not decode.
    """
    match = JSON_OBJECT_RE.search(text or "")
    if not match:
        raise AIResponseError(model, "no JSON object")
    try:
        data = json.loads(match.group())
    except json.JSONDecodeError as e:
        raise AIResponseError(model, "malformed JSON", cause=e) from e
    if not isinstance(data, dict):
        raise AIResponseError(model, "a non-object JSON value")
    return data


def parse_assessment(text: str, model: str = "unknown") -> AssessmentResult:
    data = extract_json_object(text, model)
    reason = data.get("reason")
    return AssessmentResult(
        confidence=normalize_confidence(data.get("confidence")),
        reason=str(reason) if reason else DEFAULT_REASON,
    )


def response_text(response: Any) -> str:
    """Text of the first text block in a Messages API response."""
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "text":
            return block.text
    return ""


class CounterfeitAssessor:
    """
    Score one listing for counterfeit likelihood.

    Usage:
        assessor = CounterfeitAssessor(anthropic_client, http_client, MODEL, IMAGES)
        result = await assessor.assess(listing)
    """

    def __init__(
        self,
        anthropic_client: Optional[anthropic.AsyncAnthropic],
        http_client: httpx.AsyncClient,
        model_config: ModelConfig,
        image_config: ImageConfig,
    ):
        self.anthropic_client = anthropic_client
        self.http_client = http_client
        self.model_config = model_config
        self.image_config = image_config

    @property
    def is_configured(self) -> bool:
        return self.anthropic_client is not None

    async def assess(self, listing: Listing) -> AssessmentResult:
        try:
            images = await fetch_listing_images(self.http_client, listing.image_urls, self.image_config)
            if not images:
                logger.info(f"[ASSESS] {listing.item_id}: no images available, text-only analysis")

            text = await self._call_model(listing, images)
            result = parse_assessment(text, self.model_config.model)
            logger.info(f"[ASSESS] {listing.item_id}: confidence {result.confidence}")
            return result

        except AIResponseError as e:
            logger.warning(f"[ASSESS] {listing.item_id}: {e.message}")
            return AssessmentResult(confidence=0, reason=PARSE_FAILURE_REASON)
        except Exception as e:
            logger.error(f"[ASSESS] Error analyzing listing {listing.item_id}: {e}")
            message = e.message if isinstance(e, CheckerException) else str(e)
            return AssessmentResult(confidence=0, reason=f"Analysis error: {message or type(e).__name__}")

    async def _call_model(self, listing: Listing, images: List[Dict[str, Any]]) -> str:
        if not self.is_configured:
            raise MissingAPIKeyError("anthropic")

        content = list(images)
        content.append({"type": "text", "text": build_counterfeit_prompt(listing)})

        try:
            response = await self.anthropic_client.messages.create(
                model=self.model_config.model,
                max_tokens=self.model_config.max_tokens,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.APIError as e:
            raise AnthropicAPIError(
                f"Anthropic API request failed: {e}", model=self.model_config.model, cause=e,
            ) from e

        return response_text(response)
