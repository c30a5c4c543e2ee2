"""
Tests for listing detail enrichment.
"""

import httpx
import pytest

from pipeline.listing_enrichment import (
    ListingDetails,
    ListingEnricher,
    clean_image_urls,
    merge_details,
    parse_detail_page,
    upscale_image_url,
)
from pipeline.models import Listing, UNKNOWN_PRICE
from services.rate_limiter import FixedDelayLimiter
from tests.fakes import API_URL, BASE_URL, api_item

THUMB = "https://res.cloudinary.com/sidelineswap/image/upload/c_fill,w_200,h_200/stick.jpg"
FULL = "https://res.cloudinary.com/sidelineswap/image/upload/c_fill,w_800,h_800/stick.jpg"

DETAIL_PAGE = f"""
<html><head><meta name="description" content="Meta description"></head><body>
  <h1>Bauer Vapor</h1>
  <div class="item-description">Used one season, no cracks. 77 flex P92.</div>
  <img src="{THUMB}">
  <img src="https://res.cloudinary.com/sidelineswap/avatar/seller.jpg">
  <img src="https://cdn.other.test/banner.jpg">
  <span class="item-price">$85</span>
</body></html>
"""


@pytest.fixture
def listing():
    return Listing(
        item_id="42",
        url=f"{BASE_URL}/gear/42-bauer-vapor",
        title="Bauer Vapor",
        price="$99",
        description="",
        image_urls=["https://img.test/thumb.jpg"],
        seller_username="alice",
    )


@pytest.fixture
def enricher(upstream, marketplace_config):
    return ListingEnricher(upstream.client(), marketplace_config, FixedDelayLimiter("marketplace", 0))


class TestImageUrls:

    def test_upscale(self):
        assert upscale_image_url(THUMB) == FULL
        assert upscale_image_url("https://img.test/plain.jpg") == "https://img.test/plain.jpg"

    def test_clean_drops_placeholders_and_duplicates(self):
        urls = [
            THUMB,
            THUMB.replace("w_200,h_200", "w_400,h_400"),
            "https://img.test/placeholder.png",
            "https://img.test/avatar/me.jpg",
            "",
        ]
        assert clean_image_urls(urls) == [FULL]


class TestParseDetailPage:

    def test_extracts_fields(self):
        details = parse_detail_page(DETAIL_PAGE)

        assert details.description == "Used one season, no cracks. 77 flex P92."
        assert details.image_urls == [FULL]
        assert details.price == "$85"

    def test_meta_description_fallback(self):
        details = parse_detail_page('<html><head><meta name="description" content="From meta"></head></html>')

        assert details.description == "From meta"
        assert details.image_urls == []
        assert details.price == UNKNOWN_PRICE

    def test_empty_page(self):
        assert not parse_detail_page("<html></html>").has_content()


class TestMergeDetails:

    def test_only_better_values_overwrite(self, listing):
        merged = merge_details(listing, ListingDetails(description="Full text", image_urls=[FULL], price="$70"))

        assert merged.description == "Full text"
        assert merged.image_urls == [FULL]
        # A scraped price is kept
        assert merged.price == "$99"

    def test_unknown_price_is_filled(self, listing):
        listing = listing.updated(price=UNKNOWN_PRICE)
        merged = merge_details(listing, ListingDetails(price="$70"))

        assert merged.price == "$70"
        assert merged.image_urls == ["https://img.test/thumb.jpg"]

    def test_description_is_truncated(self, listing):
        merged = merge_details(listing, ListingDetails(description="x" * 50), max_description_chars=10)
        assert merged.description == "x" * 10


class TestListingEnricher:

    @pytest.mark.asyncio
    async def test_item_api(self, upstream, enricher, listing):
        upstream.add_json(f"{API_URL}/items/42", {"data": api_item(
            42, "Bauer Vapor", price=150, description="Retail pull, never used", images=[THUMB],
        )})

        enriched = await enricher.enrich(listing)

        assert enriched.description == "Retail pull, never used"
        assert enriched.image_urls == [FULL]
        assert enriched.price == "$99"
        assert upstream.paths() == ["/v1/items/42"]

    @pytest.mark.asyncio
    async def test_html_fallback(self, upstream, enricher, listing):
        upstream.add_html(listing.url, DETAIL_PAGE)

        enriched = await enricher.enrich(listing)

        assert enriched.description.startswith("Used one season")
        assert enriched.image_urls == [FULL]
        assert upstream.paths() == ["/v1/items/42", "/gear/42-bauer-vapor"]

    @pytest.mark.asyncio
    async def test_failure_keeps_listing(self, enricher, listing):
        enriched = await enricher.enrich(listing)
        assert enriched == listing

    @pytest.mark.asyncio
    async def test_transport_error_keeps_listing(self, marketplace_config, listing):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        enricher = ListingEnricher(
            httpx.AsyncClient(transport=httpx.MockTransport(refuse)),
            marketplace_config,
            FixedDelayLimiter("marketplace", 0),
        )

        assert await enricher.enrich(listing) == listing

    @pytest.mark.asyncio
    async def test_waits_on_limiter(self, upstream, marketplace_config, listing):
        limiter = FixedDelayLimiter("marketplace", 0)
        upstream.add_html(listing.url, DETAIL_PAGE)

        await ListingEnricher(upstream.client(), marketplace_config, limiter).enrich(listing)

        assert limiter.waits == 2
