# candleshop/storefront/catalog.py
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from candleshop.storefront.api import ShopApiClient, parse_timestamp
from candleshop.storefront.errors import StorefrontError
from candleshop.storefront.notifications import Toaster
from candleshop.utils.pricing import to_money

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("name", "price_asc", "price_desc", "newest")


@dataclass
class ProductCard:
    id: int
    name: str
    price: Decimal
    stock: int
    description: str = ""
    image_url: Optional[str] = None
    category_id: Optional[int] = None
    burn_time: Optional[str] = None
    featured: bool = False
    requires_scent: bool = False
    requires_color: bool = False
    created_at: Optional[datetime] = None

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    @classmethod
    def from_api(cls, data: Dict) -> "ProductCard":
        created_at = parse_timestamp(data.get("created_at"))
        return cls(
            id=data["id"],
            name=data["name"],
            price=to_money(data["price"]),
            stock=int(data.get("stock", 0)),
            description=data.get("description") or "",
            image_url=data.get("image_url"),
            category_id=data.get("category_id"),
            burn_time=data.get("burn_time"),
            featured=bool(data.get("featured")),
            requires_scent=bool(data.get("requires_scent")),
            requires_color=bool(data.get("requires_color")),
            created_at=created_at,
        )


@dataclass
class CatalogFilters:
    category_id: Optional[int] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    search: str = ""
    in_stock_only: bool = False
    sort: str = "name"

    def matches(self, product: ProductCard) -> bool:
        if self.category_id is not None and product.category_id != self.category_id:
            return False
        if self.min_price is not None and product.price < to_money(self.min_price):
            return False
        if self.max_price is not None and product.price > to_money(self.max_price):
            return False
        if self.in_stock_only and not product.in_stock:
            return False
        term = self.search.strip().lower()
        if term and term not in product.name.lower() and term not in product.description.lower():
            return False
        return True


def sort_products(products: List[ProductCard], sort: str) -> List[ProductCard]:
    if sort == "price_asc":
        return sorted(products, key=lambda p: (p.price, p.id))
    if sort == "price_desc":
        return sorted(products, key=lambda p: (-p.price, p.id))
    if sort == "newest":
        # Products without a date go last, higher ids count as newer
        return sorted(products, key=lambda p: (p.created_at is not None, p.created_at or datetime.min, p.id),
                      reverse=True)
    return sorted(products, key=lambda p: (p.name.lower(), p.id))


@dataclass
class CatalogView:
    """Product listing with client-side filtering and sorting.

    ``load`` fetches everything once; changing filters afterwards only
    re-filters the cached list.
    """

    api: ShopApiClient
    toaster: Optional[Toaster] = None
    filters: CatalogFilters = field(default_factory=CatalogFilters)
    products: List[ProductCard] = field(default_factory=list)
    categories: List[Dict] = field(default_factory=list)
    error: Optional[StorefrontError] = None

    async def load(self) -> List[ProductCard]:
        self.error = None
        try:
            rows = await self.api.list_products()
            self.categories = await self.api.list_categories()
        except StorefrontError as e:
            self.error = e
            if self.toaster is not None:
                self.toaster.error(e)
            return self.visible
        self.products = [ProductCard.from_api(row) for row in rows]
        logger.debug("Catalog loaded %d products", len(self.products))
        return self.visible

    def set_filters(self, **changes) -> List[ProductCard]:
        for name, value in changes.items():
            if not hasattr(self.filters, name):
                raise AttributeError(f"Unknown catalog filter: {name}")
            setattr(self.filters, name, value)
        if self.filters.sort not in SORT_OPTIONS:
            raise ValueError(f"Unknown sort option: {self.filters.sort}")
        return self.visible

    def reset_filters(self) -> List[ProductCard]:
        self.filters = CatalogFilters()
        return self.visible

    @property
    def visible(self) -> List[ProductCard]:
        matching = [p for p in self.products if self.filters.matches(p)]
        return sort_products(matching, self.filters.sort)

    @property
    def featured(self) -> List[ProductCard]:
        return [p for p in self.products if p.featured]

    @property
    def price_bounds(self):
        if not self.products:
            return Decimal("0.00"), Decimal("0.00")
        prices = [p.price for p in self.products]
        return min(prices), max(prices)
