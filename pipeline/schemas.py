"""
Marketplace API response schemas.

The SidelineSwap API is unversioned and undocumented, so every field except
the item id is optional. Payloads are validated here, at the boundary; a shape
mismatch raises MarketplaceDecodeError instead of leaking half-parsed dicts
into the pipeline.
"""

import re
from typing import Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from services.exceptions import MarketplaceDecodeError
from pipeline.models import UNKNOWN_PRICE

PRICE_RE = re.compile(r"\$[\d,.]+")


def format_price(value: Any) -> str:
    """Render a marketplace price as display text ("$120", "$89.99")."""
    if value is None or isinstance(value, bool):
        return UNKNOWN_PRICE
    if isinstance(value, str):
        text = value.strip()
        match = PRICE_RE.search(text)
        if match:
            return match.group(0)
        try:
            value = float(text.replace(",", ""))
        except ValueError:
            return text or UNKNOWN_PRICE
    amount = float(value)
    if amount.is_integer():
        return f"${amount:,.0f}"
    return f"${amount:,.2f}"


class MarketplaceImage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    large_url: Optional[str] = None
    url: Optional[str] = None
    thumb_url: Optional[str] = None

    def best_url(self) -> Optional[str]:
        return self.large_url or self.url or self.thumb_url


class MarketplaceSeller(BaseModel):
    model_config = ConfigDict(extra="ignore")

    username: Optional[str] = None


class MarketplaceItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("name", "title"))
    url: Optional[str] = None
    price: Optional[Union[float, str]] = None
    description: Optional[str] = None
    images: List[Union[str, MarketplaceImage]] = Field(default_factory=list)
    seller: Optional[MarketplaceSeller] = None

    @property
    def item_id(self) -> str:
        return str(self.id)

    def image_urls(self) -> List[str]:
        urls = []
        for image in self.images:
            url = image if isinstance(image, str) else image.best_url()
            if url and url not in urls:
                urls.append(url)
        return urls

    def display_price(self) -> str:
        return format_price(self.price)


class ItemListPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: List[MarketplaceItem] = Field(default_factory=list)


class ItemDetailPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: MarketplaceItem


def decode_item_list(payload: Any) -> List[MarketplaceItem]:
    """Validate a listing-query payload. Raises MarketplaceDecodeError."""
    try:
        return ItemListPayload.model_validate(payload).data
    except PydanticValidationError as e:
        raise MarketplaceDecodeError("item list", cause=e) from e


def decode_item_detail(payload: Any) -> MarketplaceItem:
    """Validate an item-detail payload. Raises MarketplaceDecodeError."""
    try:
        return ItemDetailPayload.model_validate(payload).data
    except PydanticValidationError as e:
        raise MarketplaceDecodeError("item detail", cause=e) from e
