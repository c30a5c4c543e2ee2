"""
Storefront extraction strategies.

A seller's storefront page is parsed once, then handed to an ordered list of
strategies. The first strategy that produces at least one listing wins. New
marketplace layouts are supported by adding a strategy to the list; the
fetcher and orchestrator do not change.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from pipeline.models import Listing, UNKNOWN_PRICE
from pipeline.schemas import PRICE_RE

logger = logging.getLogger(__name__)

GEAR_ID_RE = re.compile(r"/gear/(\d+)")

# Priority order: most specific markup first
CARD_SELECTORS = (
    '[data-testid="product-card"]',
    ".product-card",
    ".listing-card",
    '[class*="ProductCard"]',
    '[class*="listing"]',
)


@dataclass
class ScrapeContext:
    """Per-seller inputs shared by every strategy"""
    seller_username: str
    base_url: str
    keyword_re: re.Pattern
    max_title_chars: int = 200
    max_description_chars: int = 1000

    def matches_keywords(self, title: str) -> bool:
        return bool(title) and bool(self.keyword_re.search(title))

    def absolute_url(self, href: str) -> str:
        if href.startswith("http"):
            return href
        return urljoin(self.base_url + "/", href)


def build_keyword_re(keywords: Sequence[str]) -> re.Pattern:
    return re.compile("|".join(re.escape(k) for k in keywords), re.IGNORECASE)


def extract_item_id(href: str) -> Optional[str]:
    """Item id from a product URL like /gear/12345-bauer-nexus"""
    match = GEAR_ID_RE.search(href or "")
    return match.group(1) if match else None


def find_price(*elements: Optional[Tag]) -> str:
    for element in elements:
        if element is None:
            continue
        match = PRICE_RE.search(element.get_text(" ", strip=True))
        if match:
            return match.group(0)
    return UNKNOWN_PRICE


def _text(element: Optional[Tag]) -> str:
    return element.get_text(" ", strip=True) if element is not None else ""


def _image_src(img: Tag) -> str:
    return img.get("src") or img.get("data-src") or ""


class ExtractionStrategy(ABC):
    """Turns a parsed storefront page into candidate listings."""

    name = "base"

    @abstractmethod
    def extract(self, page: BeautifulSoup, context: ScrapeContext) -> List[Listing]:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class ProductCardExtractor(ExtractionStrategy):
    """Product cards matched by a single CSS selector."""

    def __init__(self, selector: str):
        self.selector = selector
        self.name = f"cards:{selector}"

    def extract(self, page: BeautifulSoup, context: ScrapeContext) -> List[Listing]:
        listings = []
        for card in page.select(self.selector):
            link = card.find("a")
            href = (link.get("href") if link is not None else None) or card.get("href") or ""
            item_id = extract_item_id(href)
            if not item_id:
                continue

            title = _text(card.select_one('[class*="title"]'))
            if not title:
                title = " ".join(_text(h) for h in card.select("h2, h3, h4")).strip()
            if not title:
                img = card.find("img")
                title = (img.get("alt") or "") if img is not None else ""
            if not context.matches_keywords(title):
                continue

            image_urls = []
            for img in card.find_all("img"):
                src = _image_src(img)
                if src and "placeholder" not in src:
                    image_urls.append(src)

            listings.append(Listing(
                item_id=item_id,
                url=context.absolute_url(href),
                title=title[:context.max_title_chars],
                price=find_price(card.select_one('[class*="price"]')),
                description=_text(card.select_one('[class*="description"]'))[:context.max_description_chars],
                image_urls=image_urls,
                seller_username=context.seller_username,
            ))
        return listings


class ProductLinkExtractor(ExtractionStrategy):
    """Last resort: every link to a product page, filtered by keyword."""

    name = "links:/gear/"

    def extract(self, page: BeautifulSoup, context: ScrapeContext) -> List[Listing]:
        listings = []
        for link in page.select('a[href*="/gear/"]'):
            href = link.get("href") or ""
            item_id = extract_item_id(href)
            if not item_id:
                continue

            img = link.find("img")
            title = ((img.get("alt") or "") if img is not None else "") \
                or link.get_text(" ", strip=True) \
                or link.get("title") or ""
            if not context.matches_keywords(title):
                continue

            parent_price = link.parent.select_one('[class*="price"]') if link.parent is not None else None
            image_src = _image_src(img) if img is not None else ""

            listings.append(Listing(
                item_id=item_id,
                url=context.absolute_url(href),
                title=title[:context.max_title_chars],
                price=find_price(link.select_one('[class*="price"]'), parent_price),
                image_urls=[image_src] if image_src else [],
                seller_username=context.seller_username,
            ))
        return listings


def default_strategies() -> List[ExtractionStrategy]:
    strategies: List[ExtractionStrategy] = [ProductCardExtractor(s) for s in CARD_SELECTORS]
    strategies.append(ProductLinkExtractor())
    return strategies


def run_strategies(
    page: BeautifulSoup,
    context: ScrapeContext,
    strategies: Sequence[ExtractionStrategy],
) -> Tuple[Optional[str], List[Listing]]:
    """Return (strategy name, listings) for the first strategy with results."""
    for strategy in strategies:
        listings = strategy.extract(page, context)
        if listings:
            logger.info(f"[SCRAPE] {strategy.name} matched {len(listings)} listings for {context.seller_username}")
            return strategy.name, listings
    return None, []
