from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Candidate:
    """A token from recognized text that might be a product code."""

    original: str

    # Only [A-Za-z0-9-] survive.
    normalized: str

    score: int = 0


@dataclass(frozen=True)
class StoreEntry:
    address: str
    distance: str
    stock_level: str

    def to_dict(self) -> dict[str, str]:
        return {"address": self.address, "distance": self.distance, "stock": self.stock_level}


@dataclass(frozen=True)
class ProductRecord:
    """Product and per-store inventory scraped from a stock page."""

    name: str
    sku: str
    price: str                       # as printed, e.g. "$12.49"
    image_url: str
    stores: tuple[StoreEntry, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "sku": self.sku,
            "price": self.price,
            "imageUrl": self.image_url,
            "stores": [s.to_dict() for s in self.stores],
        }


@dataclass(frozen=True)
class NavigationIntent:
    """Where the client should go after a lookup.

    ``direct`` is True when the search endpoint pointed at a single product
    page, False for the generic search page fallback.
    """

    url: str
    direct: bool
