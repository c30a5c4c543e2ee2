"""
Listing Fetcher

Produces a bounded list of candidate listings for one seller.

Sources, tried in order until one yields data:
1. Marketplace API listing query (seller + category filters)
2. Storefront page scrape (ordered extraction strategies)

A source signals "no data" by returning [] or raising MarketplaceError;
the fetcher itself never raises.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence
from urllib.parse import quote

import httpx
from bs4 import BeautifulSoup

from config import MarketplaceConfig
from services.exceptions import CheckerException, MarketplaceError
from services.rate_limiter import FixedDelayLimiter
from pipeline.extractors import (
    ExtractionStrategy,
    ScrapeContext,
    build_keyword_re,
    default_strategies,
    run_strategies,
)
from pipeline.models import Listing
from pipeline.schemas import MarketplaceItem, decode_item_list

logger = logging.getLogger(__name__)


def dedupe_listings(listings: Iterable[Listing]) -> List[Listing]:
    """Drop repeated item ids, keeping the first occurrence."""
    seen = set()
    unique = []
    for listing in listings:
        if listing.item_id in seen:
            continue
        seen.add(listing.item_id)
        unique.append(listing)
    return unique


def item_to_listing(item: MarketplaceItem, seller_username: str, config: MarketplaceConfig) -> Listing:
    """Convert a decoded API item into a pipeline Listing."""
    if item.url:
        url = item.url if item.url.startswith("http") else f"{config.base_url}/{item.url.lstrip('/')}"
    else:
        url = f"{config.base_url}/gear/{item.item_id}"
    return Listing(
        item_id=item.item_id,
        url=url,
        title=(item.name or "").strip()[:config.max_title_chars],
        price=item.display_price(),
        description=(item.description or "").strip()[:config.max_description_chars],
        image_urls=item.image_urls(),
        seller_username=seller_username,
    )


async def get_marketplace(
    http_client: httpx.AsyncClient,
    url: str,
    limiter: FixedDelayLimiter,
    **kwargs,
) -> httpx.Response:
    """Rate-limited GET. Raises MarketplaceError on a non-2xx status."""
    await limiter.wait()
    response = await http_client.get(url, **kwargs)
    if not response.is_success:
        raise MarketplaceError(
            f"Marketplace returned HTTP {response.status_code}",
            url=url,
            status_code=response.status_code,
        )
    return response


class ListingSource(ABC):
    name = "base"

    @abstractmethod
    async def fetch(self, seller_username: str) -> List[Listing]:
        pass


class ApiListingSource(ListingSource):
    """Structured listing query scoped to the seller and category filters."""

    name = "api"

    def __init__(self, http_client: httpx.AsyncClient, config: MarketplaceConfig, limiter: FixedDelayLimiter):
        self.http_client = http_client
        self.config = config
        self.limiter = limiter

    def build_params(self, seller_username: str) -> List[tuple]:
        # Bracket-style repeated array params: seller[]=x&category[]=y&category[]=z
        params = [("seller[]", seller_username)]
        params.extend(("category[]", category) for category in self.config.category_filters)
        return params

    async def fetch(self, seller_username: str) -> List[Listing]:
        url = f"{self.config.api_base_url}/facet_items"
        response = await get_marketplace(
            self.http_client,
            url,
            self.limiter,
            params=self.build_params(seller_username),
            headers={"Accept": "application/json"},
        )
        try:
            payload = response.json()
        except ValueError as e:
            raise MarketplaceError("Listing query returned non-JSON body", url=url, cause=e) from e

        items = decode_item_list(payload)
        return [item_to_listing(item, seller_username, self.config) for item in items]


class StorefrontListingSource(ListingSource):
    """Seller storefront HTML, parsed by ordered extraction strategies."""

    name = "storefront"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: MarketplaceConfig,
        limiter: FixedDelayLimiter,
        strategies: Optional[Sequence[ExtractionStrategy]] = None,
    ):
        self.http_client = http_client
        self.config = config
        self.limiter = limiter
        self.strategies = list(strategies) if strategies is not None else default_strategies()
        self.keyword_re = build_keyword_re(config.keywords)

    def storefront_url(self, seller_username: str) -> str:
        return f"{self.config.base_url}/shop/{quote(seller_username, safe='')}"

    async def fetch(self, seller_username: str) -> List[Listing]:
        response = await get_marketplace(self.http_client, self.storefront_url(seller_username), self.limiter)
        page = BeautifulSoup(response.text, "lxml")
        context = ScrapeContext(
            seller_username=seller_username,
            base_url=self.config.base_url,
            keyword_re=self.keyword_re,
            max_title_chars=self.config.max_title_chars,
            max_description_chars=self.config.max_description_chars,
        )
        _, listings = run_strategies(page, context, self.strategies)
        return listings


class ListingFetcher:
    """
    Fetch a seller's candidate listings.

    Usage:
        fetcher = ListingFetcher(http_client, MARKETPLACE, limits.marketplace)
        listings = await fetcher.fetch("some_seller")
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: MarketplaceConfig,
        limiter: FixedDelayLimiter,
        sources: Optional[Sequence[ListingSource]] = None,
    ):
        self.config = config
        if sources is None:
            sources = [
                ApiListingSource(http_client, config, limiter),
                StorefrontListingSource(http_client, config, limiter),
            ]
        self.sources = list(sources)

    async def fetch(self, seller_username: str) -> List[Listing]:
        for source in self.sources:
            try:
                listings = await source.fetch(seller_username)
            except CheckerException as e:
                logger.warning(f"[FETCH] {source.name} gave no data for {seller_username}: {e}")
                continue
            except httpx.HTTPError as e:
                logger.warning(f"[FETCH] {source.name} request failed for {seller_username}: {e}")
                continue
            except Exception as e:
                logger.error(f"[FETCH] {source.name} crashed for {seller_username}: {e}", exc_info=True)
                continue

            listings = dedupe_listings(listings)
            if listings:
                capped = listings[:self.config.max_listings]
                logger.info(f"[FETCH] {seller_username}: keeping {len(capped)}/{len(listings)} listings via {source.name}")
                return capped

            logger.info(f"[FETCH] {source.name} returned no listings for {seller_username}")

        return []
