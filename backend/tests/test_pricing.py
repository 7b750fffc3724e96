"""
Tests for price resolution and configuration aggregation
"""
from decimal import Decimal

import pytest

from buildcost.catalog import CatalogStore
from buildcost.errors import NotFoundError, ValidationError
from buildcost.pricing import ConfigurationAggregator, PriceResolver
from buildcost.schemas import LineItemRequest


def item(component_id, price, merchant_id=None):
    return LineItemRequest(
        component_id=component_id, selected_merchant_id=merchant_id, price=Decimal(str(price))
    )


@pytest.mark.asyncio
async def test_listed_merchant_price_overrides_client_price(db, seeded):
    resolver = PriceResolver(CatalogStore(db))

    price = await resolver.resolve_price(seeded.cpu_id, seeded.shop_id, Decimal("1"))

    assert price == Decimal("650.00")


@pytest.mark.asyncio
async def test_client_price_used_without_merchant(db, seeded):
    resolver = PriceResolver(CatalogStore(db))

    price = await resolver.resolve_price(seeded.cpu_id, None, Decimal("1"))

    assert price == Decimal("1.00")


@pytest.mark.asyncio
async def test_unlisted_merchant_falls_back_to_client_price(db, seeded):
    resolver = PriceResolver(CatalogStore(db), strict=False)

    price = await resolver.resolve_price(seeded.cpu_id, seeded.other_shop_id, Decimal("612.50"))

    assert price == Decimal("612.50")


@pytest.mark.asyncio
async def test_strict_mode_rejects_unlisted_merchant_price(db, seeded):
    resolver = PriceResolver(CatalogStore(db), strict=True)

    with pytest.raises(ValidationError):
        await resolver.resolve_price(seeded.cpu_id, seeded.other_shop_id, Decimal("612.50"))

    # Listed prices still resolve in strict mode
    assert await resolver.resolve_price(seeded.cpu_id, seeded.shop_id, Decimal("1")) == Decimal("650.00")


@pytest.mark.asyncio
async def test_resolve_rejects_missing_and_inactive_components(db, seeded):
    resolver = PriceResolver(CatalogStore(db))

    with pytest.raises(NotFoundError):
        await resolver.resolve_price(12345, None, Decimal("10"))
    with pytest.raises(NotFoundError):
        await resolver.resolve_price(seeded.retired_id, None, Decimal("10"))


@pytest.mark.asyncio
async def test_price_for_skips_component_lookup(db, seeded):
    resolver = PriceResolver(CatalogStore(db))

    # The caller has already vetted the component
    assert await resolver.price_for(seeded.retired_id, None, Decimal("10")) == Decimal("10.00")
    assert await resolver.price_for(seeded.cpu_id, seeded.shop_id, Decimal("1")) == Decimal("650.00")


@pytest.mark.asyncio
async def test_aggregate_totals_line_items_in_order(db, seeded):
    aggregator = ConfigurationAggregator(CatalogStore(db))

    result = await aggregator.aggregate([
        item(seeded.gpu_id, "599.99"),
        item(seeded.cpu_id, "1", seeded.shop_id),
    ])

    assert [line.component_id for line in result.line_items] == [seeded.gpu_id, seeded.cpu_id]
    assert [line.unit_price for line in result.line_items] == [Decimal("599.99"), Decimal("650.00")]
    assert result.total_price == sum(line.unit_price for line in result.line_items)
    assert result.total_price == Decimal("1249.99")


@pytest.mark.asyncio
async def test_aggregate_attaches_display_names(db, seeded):
    aggregator = ConfigurationAggregator(CatalogStore(db))

    result = await aggregator.aggregate([item(seeded.cpu_id, "1", seeded.shop_id)])

    line = result.line_items[0]
    assert line.component_title == "Intel Core i9-12900K"
    assert line.category_name == "CPU"
    assert line.merchant_name == "LDLC"
    assert line.selected_merchant_id == seeded.shop_id


@pytest.mark.asyncio
async def test_aggregate_is_idempotent(db, seeded):
    aggregator = ConfigurationAggregator(CatalogStore(db))
    requests = [item(seeded.cpu_id, "1", seeded.shop_id), item(seeded.gpu_id, "499")]

    first = await aggregator.aggregate(requests)
    second = await aggregator.aggregate(requests)

    assert first == second


@pytest.mark.asyncio
async def test_aggregate_rejects_empty_input(db, seeded):
    aggregator = ConfigurationAggregator(CatalogStore(db))

    with pytest.raises(ValidationError):
        await aggregator.aggregate([])


@pytest.mark.asyncio
async def test_aggregate_fails_fast_naming_missing_component(db, seeded):
    aggregator = ConfigurationAggregator(CatalogStore(db))

    with pytest.raises(NotFoundError) as exc_info:
        await aggregator.aggregate([item(seeded.cpu_id, "100"), item(9999, "100")])

    assert exc_info.value.entity_id == 9999
    assert "9999" in exc_info.value.message


@pytest.mark.asyncio
async def test_aggregate_rejects_unknown_merchant(db, seeded):
    aggregator = ConfigurationAggregator(CatalogStore(db))

    with pytest.raises(NotFoundError) as exc_info:
        await aggregator.aggregate([item(seeded.cpu_id, "100", 4242)])

    assert exc_info.value.entity == "Merchant"
