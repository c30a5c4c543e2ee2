"""
Tests for the Counterfeit Assessor and model output parsing.
"""

import math

import anthropic
import httpx
import pytest

from pipeline.assessor import (
    DEFAULT_REASON,
    PARSE_FAILURE_REASON,
    CounterfeitAssessor,
    extract_json_object,
    normalize_confidence,
    parse_assessment,
)
from pipeline.models import Listing
from services.exceptions import AIResponseError
from tests.fakes import IMAGE_HOST, jpeg_bytes, make_claude, verdict


@pytest.fixture
def listing():
    return Listing(
        item_id="9",
        url="https://sidelineswap.test/gear/9",
        title="Bauer Nexus Geo",
        price="$45",
        description="Brand new, tags on",
        image_urls=[],
        seller_username="alice",
    )


def make_assessor(claude, upstream, model_config, image_config):
    return CounterfeitAssessor(claude, upstream.client(), model_config, image_config)


class TestNormalizeConfidence:

    @pytest.mark.parametrize("raw,expected", [
        (85, 85),
        ("85", 85),
        (72.6, 73),
        (150, 100),
        (-5, 0),
        ("abc", 0),
        (None, 0),
        (math.nan, 0),
        (10 ** 400, 100),
        (-(10 ** 400), 0),
    ])
    def test_values(self, raw, expected):
        assert normalize_confidence(raw) == expected


class TestParsing:

    def test_json_inside_prose(self):
        text = 'Here is my assessment:\n{"confidence": 40, "reason": "Price is low"}\nHope this helps.'
        assert extract_json_object(text) == {"confidence": 40, "reason": "Price is low"}

    def test_no_json(self):
        with pytest.raises(AIResponseError):
            extract_json_object("I cannot tell from these photos.")

    def test_malformed_json(self):
        with pytest.raises(AIResponseError):
            extract_json_object('{"confidence": 40, "reason": }')

    def test_missing_reason(self):
        result = parse_assessment('{"confidence": 55}')
        assert result.confidence == 55
        assert result.reason == DEFAULT_REASON


class TestCounterfeitAssessor:

    @pytest.mark.asyncio
    async def test_assess(self, upstream, model_config, image_config, listing):
        claude = make_claude(verdict(82, "Wrong font on the shaft logo"))

        result = await make_assessor(claude, upstream, model_config, image_config).assess(listing)

        assert result.confidence == 82
        assert result.reason == "Wrong font on the shaft logo"

        kwargs = claude.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["max_tokens"] == 500
        content = kwargs["messages"][0]["content"]
        assert len(content) == 1
        assert content[0]["type"] == "text"
        assert "Bauer Nexus Geo" in content[0]["text"]
        assert "Brand new, tags on" in content[0]["text"]

    @pytest.mark.asyncio
    async def test_images_precede_prompt(self, upstream, model_config, image_config, listing):
        upstream.add_image(f"{IMAGE_HOST}/1.jpg", jpeg_bytes())
        upstream.add_image(f"{IMAGE_HOST}/2.jpg", jpeg_bytes())
        listing = listing.updated(image_urls=[f"{IMAGE_HOST}/1.jpg", f"{IMAGE_HOST}/2.jpg"])
        claude = make_claude(verdict(10))

        await make_assessor(claude, upstream, model_config, image_config).assess(listing)

        content = claude.messages.create.call_args.kwargs["messages"][0]["content"]
        assert [block["type"] for block in content] == ["image", "image", "text"]

    @pytest.mark.asyncio
    async def test_unfetchable_images_still_assessed(self, upstream, model_config, image_config, listing):
        listing = listing.updated(image_urls=[f"{IMAGE_HOST}/gone.jpg"])
        claude = make_claude(verdict(64))

        result = await make_assessor(claude, upstream, model_config, image_config).assess(listing)

        assert result.confidence == 64
        claude.messages.create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_malformed_image_url_still_assessed(self, upstream, model_config, image_config, listing):
        upstream.add_image(f"{IMAGE_HOST}/good.jpg", jpeg_bytes())
        listing = listing.updated(image_urls=[f"{IMAGE_HOST}/a\n.jpg", f"{IMAGE_HOST}/good.jpg"])
        claude = make_claude(verdict(80, "Logo placement is off"))

        result = await make_assessor(claude, upstream, model_config, image_config).assess(listing)

        assert result.confidence == 80
        content = claude.messages.create.call_args.kwargs["messages"][0]["content"]
        assert [block["type"] for block in content] == ["image", "text"]

    @pytest.mark.asyncio
    async def test_non_json_output(self, upstream, model_config, image_config, listing):
        claude = make_claude("This stick looks authentic to me.")

        result = await make_assessor(claude, upstream, model_config, image_config).assess(listing)

        assert result.confidence == 0
        assert result.reason == PARSE_FAILURE_REASON

    @pytest.mark.asyncio
    async def test_confidence_clamped(self, upstream, model_config, image_config, listing):
        claude = make_claude(verdict(250, "Obvious fake"))

        result = await make_assessor(claude, upstream, model_config, image_config).assess(listing)

        assert result.confidence == 100

    @pytest.mark.asyncio
    async def test_unexpected_error(self, upstream, model_config, image_config, listing):
        claude = make_claude(side_effect=RuntimeError("boom"))

        result = await make_assessor(claude, upstream, model_config, image_config).assess(listing)

        assert result.confidence == 0
        assert result.reason == "Analysis error: boom"

    @pytest.mark.asyncio
    async def test_api_error(self, upstream, model_config, image_config, listing):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        claude = make_claude(side_effect=anthropic.APIConnectionError(request=request))

        result = await make_assessor(claude, upstream, model_config, image_config).assess(listing)

        assert result.confidence == 0
        assert result.reason.startswith("Analysis error: Anthropic API request failed")

    @pytest.mark.asyncio
    async def test_unconfigured(self, upstream, model_config, image_config, listing):
        assessor = make_assessor(None, upstream, model_config, image_config)

        result = await assessor.assess(listing)

        assert not assessor.is_configured
        assert result.confidence == 0
        assert result.reason == "Analysis error: Anthropic API key not configured"
