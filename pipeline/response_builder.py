"""
Response building for the analysis pipeline.

Applies the confidence threshold, orders results and assembles the
response body returned by the analyze endpoint.
"""

import logging
from typing import Dict, Iterable, List, Optional

from pipeline.models import AnalysisRecord, AnalyzeResponse, AssessmentResult

logger = logging.getLogger(__name__)


def passes_threshold(assessment: AssessmentResult, threshold: int) -> bool:
    return assessment.confidence >= threshold


def sort_by_confidence(records: Iterable[AnalysisRecord]) -> List[AnalysisRecord]:
    """Highest confidence first; ties keep encounter order (sorted is stable)."""
    return sorted(records, key=lambda record: record.confidence, reverse=True)


def build_response(records: Iterable[AnalysisRecord], errors: Optional[List[str]] = None) -> AnalyzeResponse:
    results = sort_by_confidence(records)
    logger.info(f"[RESPONSE] {len(results)} results, {len(errors or [])} errors")
    return AnalyzeResponse(results=results, errors=list(errors) if errors else None)


def error_body(message: str) -> Dict[str, list]:
    """Body for a failed request; same shape as a successful one."""
    return {"results": [], "errors": [message]}
