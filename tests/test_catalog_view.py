import asyncio
from datetime import datetime
from decimal import Decimal

import pytest

from candleshop.storefront.catalog import CatalogFilters, CatalogView, ProductCard, sort_products
from candleshop.storefront.errors import NetworkError
from candleshop.storefront.notifications import Toaster

from conftest import JAR_ID, PILLAR_ID, make_api


def card(id, name, price, stock=5, **extra):
    return ProductCard(id=id, name=name, price=Decimal(price), stock=stock, **extra)


PRODUCTS = [
    card(1, "Vanilla jar", "14.90", category_id=1, created_at=datetime(2025, 1, 5)),
    card(2, "amber pillar", "9.50", category_id=2, created_at=datetime(2025, 3, 1)),
    card(3, "Tea lights", "4.99", stock=0, category_id=3, description="Unscented set"),
]


def test_sorting():
    assert [p.id for p in sort_products(PRODUCTS, "name")] == [2, 3, 1]
    assert [p.id for p in sort_products(PRODUCTS, "price_asc")] == [3, 2, 1]
    assert [p.id for p in sort_products(PRODUCTS, "price_desc")] == [1, 2, 3]
    # undated products last
    assert [p.id for p in sort_products(PRODUCTS, "newest")] == [2, 1, 3]


def test_filters():
    assert CatalogFilters(category_id=2).matches(PRODUCTS[1])
    assert not CatalogFilters(category_id=2).matches(PRODUCTS[0])
    assert not CatalogFilters(min_price=Decimal("10")).matches(PRODUCTS[1])
    assert not CatalogFilters(max_price="5").matches(PRODUCTS[0])
    assert CatalogFilters(search="UNSCENTED").matches(PRODUCTS[2])
    assert not CatalogFilters(in_stock_only=True).matches(PRODUCTS[2])


def test_catalog_view_loads_and_filters():
    async def scenario():
        async with make_api() as api:
            view = CatalogView(api)
            visible = await view.load()
            assert [p.name for p in visible] == ["Lavender jar candle", "Pillar candle"]
            assert len(view.categories) == 3
            assert view.featured[0].id == JAR_ID
            assert view.products[0].requires_scent

            assert [p.id for p in view.set_filters(sort="price_asc")] == [PILLAR_ID, JAR_ID]
            assert [p.id for p in view.set_filters(max_price=Decimal("10"))] == [PILLAR_ID]
            assert view.set_filters(search="nothing like this") == []
            assert len(view.reset_filters()) == 2
            assert view.price_bounds == (Decimal("9.50"), Decimal("14.90"))

            with pytest.raises(ValueError):
                view.set_filters(sort="popularity")

    asyncio.run(scenario())


def test_catalog_view_reports_network_failure():
    toaster = Toaster()

    class BrokenApi:
        async def list_products(self):
            raise NetworkError("Could not reach the shop")

        async def list_categories(self):
            return []

    async def scenario():
        view = CatalogView(BrokenApi(), toaster=toaster)
        assert await view.load() == []
        assert isinstance(view.error, NetworkError)

    asyncio.run(scenario())
    assert toaster.toasts[0].title == "Connection problem"
