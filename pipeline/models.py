"""
Data model for the counterfeit analysis pipeline.

Internal pipeline values are dataclasses; the HTTP request/response bodies
are pydantic models so FastAPI can validate and serialize them.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional

from pydantic import BaseModel, Field

from config import DEFAULT_THRESHOLD

UNKNOWN_PRICE = "Unknown"


@dataclass
class Listing:
    """One seller's product entry on the marketplace"""
    item_id: str
    url: str
    title: str
    price: str = UNKNOWN_PRICE
    description: str = ""
    image_urls: List[str] = field(default_factory=list)
    seller_username: str = ""

    @property
    def primary_image_url(self) -> str:
        return self.image_urls[0] if self.image_urls else ""

    def updated(self, **changes) -> "Listing":
        """Copy with the given fields overwritten."""
        return replace(self, **changes)


@dataclass(frozen=True)
class AssessmentResult:
    """Model verdict for a single listing"""
    confidence: int  # 0-100, likelihood of counterfeit
    reason: str


class AnalysisRecord(BaseModel):
    """A listing joined with its assessment; the unit of output"""
    item_id: str
    url: str
    image_url: str = ""
    title: str
    confidence: int = Field(ge=0, le=100)
    reason: str

    @classmethod
    def from_assessment(cls, listing: Listing, assessment: AssessmentResult) -> "AnalysisRecord":
        return cls(
            item_id=listing.item_id,
            url=listing.url,
            image_url=listing.primary_image_url,
            title=listing.title,
            confidence=assessment.confidence,
            reason=assessment.reason,
        )


class AnalyzeRequest(BaseModel):
    usernames: List[str]
    threshold: int = Field(default=DEFAULT_THRESHOLD, ge=0, le=100)

    def seller_names(self) -> List[str]:
        """Trimmed, non-empty usernames in input order, first occurrence wins."""
        names = []
        for raw in self.usernames:
            name = raw.strip()
            if name and name not in names:
                names.append(name)
        return names


class AnalyzeResponse(BaseModel):
    results: List[AnalysisRecord] = Field(default_factory=list)
    errors: Optional[List[str]] = None


class ExportRequest(BaseModel):
    results: List[AnalysisRecord] = Field(default_factory=list)
