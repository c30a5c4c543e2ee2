"""
Pipeline Module - Seller Counterfeit Analysis

Stages, run sequentially per seller:
- Listing Fetcher: marketplace API query, storefront scrape fallback
- Enricher: per-item detail lookup for description, images, price
- Assessor: Claude vision verdict, normalized to confidence 0-100
- Orchestrator: coordinates the stages, filters by threshold, sorts

Usage:
    from pipeline import build_orchestrator
    response = await build_orchestrator(settings, http, claude, limits).run(request)
"""

from .models import Listing, AssessmentResult, AnalysisRecord, AnalyzeRequest, AnalyzeResponse
from .listing_fetcher import ListingFetcher
from .listing_enrichment import ListingEnricher
from .assessor import CounterfeitAssessor
from .orchestrator import BatchOrchestrator, build_orchestrator

__all__ = [
    'Listing',
    'AssessmentResult',
    'AnalysisRecord',
    'AnalyzeRequest',
    'AnalyzeResponse',
    'ListingFetcher',
    'ListingEnricher',
    'CounterfeitAssessor',
    'BatchOrchestrator',
    'build_orchestrator',
]
