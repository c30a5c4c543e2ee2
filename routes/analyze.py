"""
Analyze Routes - Seller counterfeit analysis endpoints

This module contains:
- POST /api/analyze         run the batch pipeline for a list of sellers
- POST /api/analyze/export  download results as CSV
- GET  /                    the single-page UI
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError

from services.app_state import get_app_state_from_request
from services.error_handler import server_error_message
from services.exceptions import AnalysisError, CheckerException, InvalidRequestError
from pipeline.models import AnalyzeRequest, ExportRequest
from pipeline.orchestrator import build_orchestrator
from templates.pages import render_index_page
from utils.csv_export import export_filename, results_to_csv

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analyze"])

THRESHOLD_MESSAGE = "Threshold must be a number between 0 and 100"


async def read_json_body(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidRequestError("Request body must be valid JSON", field=None, cause=e) from e


def parse_analyze_request(body: Any) -> AnalyzeRequest:
    """Validate the analyze body. Raises InvalidRequestError."""
    if not isinstance(body, dict):
        raise InvalidRequestError()
    try:
        return AnalyzeRequest.model_validate(body)
    except PydanticValidationError as e:
        fields = {err["loc"][0] for err in e.errors() if err.get("loc")}
        if fields == {"threshold"}:
            raise InvalidRequestError(THRESHOLD_MESSAGE, field="threshold", cause=e) from e
        raise InvalidRequestError(cause=e) from e


# ============================================================
# ANALYSIS ENDPOINTS
# ============================================================

@router.post("/api/analyze")
async def api_analyze(request: Request):
    """Analyze each seller's listings and return those at or above threshold."""
    state = get_app_state_from_request(request)
    state.increment_stat("total_requests")

    analyze_request = parse_analyze_request(await read_json_body(request))
    logger.info(f"[API] Analyze request: {len(analyze_request.usernames)} usernames, "
                f"threshold {analyze_request.threshold}")

    state.open_clients()
    orchestrator = build_orchestrator(
        state.settings, state.http_client, state.anthropic_client, state.rate_limits,
    )

    try:
        response = await orchestrator.run(analyze_request)
    except CheckerException:
        raise
    except Exception as e:
        logger.error(f"[API] Analysis failed: {e}", exc_info=True)
        raise AnalysisError(server_error_message(e), cause=e) from e

    stats = orchestrator.get_stats()
    state.increment_stat("sellers_processed", stats["sellers_processed"])
    state.increment_stat("listings_assessed", stats["listings_assessed"])
    state.increment_stat("results_returned", len(response.results))

    return JSONResponse(content=response.model_dump(exclude_none=True))


@router.post("/api/analyze/export")
async def api_analyze_export(request: Request):
    """Render posted results as a CSV attachment."""
    body = await read_json_body(request)
    try:
        export_request = ExportRequest.model_validate(body)
    except PydanticValidationError as e:
        raise InvalidRequestError("Results must be a list of analysis records", field="results", cause=e) from e

    filename = export_filename()
    logger.info(f"[API] Exporting {len(export_request.results)} results to {filename}")
    return Response(
        content=results_to_csv(export_request.results),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============================================================
# UI
# ============================================================

@router.get("/", response_class=HTMLResponse)
async def index(request: Request):
    state = get_app_state_from_request(request)
    return HTMLResponse(content=render_index_page(state.settings.default_threshold))
