"""
Listing enrichment for the analysis pipeline.

Fetches a per-item detail resource to fill in description, full-resolution
images and price. Tries the marketplace item API first, then the listing's
own HTML page. A field is only overwritten when a better value was found,
and any failure leaves the listing unchanged.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional
from urllib.parse import quote

import httpx
from bs4 import BeautifulSoup

from config import MarketplaceConfig
from services.exceptions import CheckerException
from services.rate_limiter import FixedDelayLimiter
from pipeline.listing_fetcher import get_marketplace
from pipeline.models import Listing, UNKNOWN_PRICE
from pipeline.schemas import PRICE_RE, MarketplaceItem, decode_item_detail

logger = logging.getLogger(__name__)

# Cloudinary-style size tokens, e.g. .../c_fill,w_200,h_200/...
THUMB_WIDTH_RE = re.compile(r"w_\d+")
THUMB_HEIGHT_RE = re.compile(r"h_\d+")
FULL_SIZE = 800
EXCLUDED_IMAGE_TOKENS = ("placeholder", "avatar")


@dataclass
class ListingDetails:
    """Fields recovered from a detail resource"""
    description: str = ""
    image_urls: List[str] = field(default_factory=list)
    price: str = UNKNOWN_PRICE

    def has_content(self) -> bool:
        return bool(self.description or self.image_urls or self.price != UNKNOWN_PRICE)


def upscale_image_url(url: str) -> str:
    """Rewrite thumbnail size tokens to the full-resolution size."""
    url = THUMB_WIDTH_RE.sub(f"w_{FULL_SIZE}", url, count=1)
    return THUMB_HEIGHT_RE.sub(f"h_{FULL_SIZE}", url, count=1)


def clean_image_urls(urls: Iterable[str]) -> List[str]:
    """Drop placeholder/avatar images, upscale, dedupe (order kept)."""
    cleaned = []
    for url in urls:
        if not url or any(token in url for token in EXCLUDED_IMAGE_TOKENS):
            continue
        url = upscale_image_url(url)
        if url not in cleaned:
            cleaned.append(url)
    return cleaned


def details_from_item(item: MarketplaceItem) -> ListingDetails:
    return ListingDetails(
        description=(item.description or "").strip(),
        image_urls=clean_image_urls(item.image_urls()),
        price=item.display_price(),
    )


def parse_detail_page(html: str) -> ListingDetails:
    """Pull description, images and price out of an item page."""
    page = BeautifulSoup(html, "lxml")

    description = ""
    for selector in ('[class*="description"]', '[data-testid="description"]'):
        element = page.select_one(selector)
        if element is not None:
            description = element.get_text(" ", strip=True)
            if description:
                break
    if not description:
        meta = page.select_one('meta[name="description"]')
        if meta is not None:
            description = (meta.get("content") or "").strip()

    sources = [img.get("src") for img in page.select('img[src*="sidelineswap"], img[src*="cloudinary"]')]

    price = UNKNOWN_PRICE
    for selector in ('[class*="price"]', '[data-testid="price"]'):
        element = page.select_one(selector)
        if element is None:
            continue
        match = PRICE_RE.search(element.get_text(" ", strip=True))
        if match:
            price = match.group(0)
            break

    return ListingDetails(
        description=description,
        image_urls=clean_image_urls(sources),
        price=price,
    )


def merge_details(listing: Listing, details: ListingDetails, max_description_chars: int = 1000) -> Listing:
    """Overwrite only the fields the detail resource improved."""
    description = details.description or listing.description
    price = listing.price
    if price == UNKNOWN_PRICE and details.price != UNKNOWN_PRICE:
        price = details.price
    return listing.updated(
        description=description[:max_description_chars],
        image_urls=details.image_urls or listing.image_urls,
        price=price,
    )


class ListingEnricher:
    """
    Fill gaps in a listing from its detail resource.

    Usage:
        enricher = ListingEnricher(http_client, MARKETPLACE, limits.marketplace)
        listing = await enricher.enrich(listing)
    """

    def __init__(self, http_client: httpx.AsyncClient, config: MarketplaceConfig, limiter: FixedDelayLimiter):
        self.http_client = http_client
        self.config = config
        self.limiter = limiter

    async def enrich(self, listing: Listing) -> Listing:
        try:
            details = await self.fetch_details(listing)
        except Exception as e:
            logger.warning(f"[ENRICH] Error fetching details for {listing.item_id}: {e}")
            return listing

        if details is None or not details.has_content():
            logger.debug(f"[ENRICH] No details found for {listing.item_id}")
            return listing

        enriched = merge_details(listing, details, self.config.max_description_chars)
        logger.info(f"[ENRICH] {listing.item_id}: {len(enriched.image_urls)} images, "
                    f"{len(enriched.description)} char description, price {enriched.price}")
        return enriched

    async def fetch_details(self, listing: Listing) -> Optional[ListingDetails]:
        api_url = f"{self.config.api_base_url}/items/{quote(listing.item_id, safe='')}"
        try:
            response = await get_marketplace(
                self.http_client, api_url, self.limiter, headers={"Accept": "application/json"},
            )
            details = details_from_item(decode_item_detail(response.json()))
            if details.has_content():
                return details
        except (CheckerException, httpx.HTTPError, ValueError) as e:
            logger.debug(f"[ENRICH] Item API unavailable for {listing.item_id}: {e}")

        if not listing.url:
            return None
        response = await get_marketplace(self.http_client, listing.url, self.limiter)
        return parse_detail_page(response.text)
