"""
Pipeline Orchestrator

Drives the batch: for each seller, Listing Fetcher -> Enricher -> Assessor,
then filters by threshold and sorts.

Flow:
1. Validate once: usable usernames, model credential configured
2. Per seller (sequential): fetch listings, enrich the first K,
   assess each listing behind the model rate limiter
3. Keep records at or above the threshold
4. Sort by confidence (stable) and return results + per-seller errors

Sellers and listings are processed strictly one at a time. Paid model calls
and the scraped site both get fixed delays from the injected RateLimits.
"""

import logging
from typing import Any, Dict, List, Optional

import anthropic
import httpx

from config import Settings
from services.exceptions import InvalidRequestError, MissingAPIKeyError
from services.rate_limiter import RateLimits
from pipeline.assessor import CounterfeitAssessor
from pipeline.listing_enrichment import ListingEnricher
from pipeline.listing_fetcher import ListingFetcher
from pipeline.models import AnalysisRecord, AnalyzeRequest, AnalyzeResponse, Listing
from pipeline.response_builder import build_response, passes_threshold

logger = logging.getLogger(__name__)


def no_listings_message(seller: str) -> str:
    return f"No hockey stick listings found for seller: {seller}"


class BatchOrchestrator:
    """
    Main orchestrator for the analysis pipeline.

    Usage:
        orchestrator = BatchOrchestrator(fetcher, enricher, assessor, rate_limits)
        response = await orchestrator.run(AnalyzeRequest(usernames=["seller"]))
    """

    def __init__(
        self,
        fetcher: ListingFetcher,
        enricher: ListingEnricher,
        assessor: CounterfeitAssessor,
        rate_limits: RateLimits,
        enrich_limit: int = 10,
    ):
        self.fetcher = fetcher
        self.enricher = enricher
        self.assessor = assessor
        self.rate_limits = rate_limits
        self.enrich_limit = enrich_limit

        self.stats = {
            "sellers_processed": 0,
            "sellers_without_listings": 0,
            "listings_assessed": 0,
            "results_kept": 0,
        }

    def validate(self, request: AnalyzeRequest) -> List[str]:
        """Return the sellers to process, or raise before any work starts."""
        sellers = request.seller_names()
        if not sellers:
            raise InvalidRequestError()
        if not self.assessor.is_configured:
            raise MissingAPIKeyError("anthropic")
        return sellers

    async def run(self, request: AnalyzeRequest) -> AnalyzeResponse:
        sellers = self.validate(request)
        logger.info(f"[BATCH] Analyzing {len(sellers)} sellers (threshold {request.threshold})")

        records: List[AnalysisRecord] = []
        errors: List[str] = []

        for seller in sellers:
            self.stats["sellers_processed"] += 1
            try:
                seller_records = await self.process_seller(seller, request.threshold)
            except Exception as e:
                logger.error(f"[BATCH] Seller {seller} failed: {e}", exc_info=True)
                errors.append(f"Failed to analyze seller {seller}: {e}")
                continue

            if seller_records is None:
                self.stats["sellers_without_listings"] += 1
                errors.append(no_listings_message(seller))
                continue

            records.extend(seller_records)
            await self.rate_limits.seller.wait()

        self.stats["results_kept"] += len(records)
        return build_response(records, errors)

    async def process_seller(self, seller: str, threshold: int):
        """Records at or above threshold for one seller; None if no listings."""
        logger.info(f"[BATCH] Scraping listings for seller: {seller}")
        listings = await self.fetcher.fetch(seller)
        if not listings:
            return None

        logger.info(f"[BATCH] Found {len(listings)} listings for {seller}")
        listings = await self.enrich_listings(listings)

        records = []
        for listing in listings:
            await self.rate_limits.model.wait()
            logger.info(f"[BATCH] Analyzing listing: {listing.item_id}")
            assessment = await self.assessor.assess(listing)
            self.stats["listings_assessed"] += 1

            if passes_threshold(assessment, threshold):
                records.append(AnalysisRecord.from_assessment(listing, assessment))
        return records

    async def enrich_listings(self, listings: List[Listing]) -> List[Listing]:
        """Enrich the first enrich_limit listings; the rest pass through."""
        enriched = []
        for index, listing in enumerate(listings):
            if index < self.enrich_limit:
                listing = await self.enricher.enrich(listing)
            enriched.append(listing)
        return enriched

    def get_stats(self) -> Dict[str, Any]:
        return dict(self.stats)


def build_orchestrator(
    settings: Settings,
    http_client: httpx.AsyncClient,
    anthropic_client: Optional[anthropic.AsyncAnthropic],
    rate_limits: RateLimits,
) -> BatchOrchestrator:
    """Wire the pipeline components from settings and shared clients."""
    return BatchOrchestrator(
        fetcher=ListingFetcher(http_client, settings.marketplace, rate_limits.marketplace),
        enricher=ListingEnricher(http_client, settings.marketplace, rate_limits.marketplace),
        assessor=CounterfeitAssessor(anthropic_client, http_client, settings.model, settings.images),
        rate_limits=rate_limits,
        enrich_limit=settings.marketplace.enrich_limit,
    )
