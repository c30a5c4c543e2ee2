"""
CSV export of analysis results.

Columns match the results table in the web UI. The header row is bare.
Text fields are always quoted with embedded quotes doubled, and confidence
is written as a bare integer.
"""

import csv
import io
from datetime import date
from typing import Iterable, Optional

from pipeline.models import AnalysisRecord

CSV_HEADERS = ("Item ID", "Title", "URL", "Confidence", "Reason")


def results_to_csv(results: Iterable[AnalysisRecord]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    buffer.write(",".join(CSV_HEADERS) + "\n")
    for record in results:
        writer.writerow([record.item_id, record.title, record.url, record.confidence, record.reason])
    return buffer.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"counterfeit-analysis-{today.isoformat()}.csv"
