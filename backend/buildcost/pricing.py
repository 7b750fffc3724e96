"""
Price resolution and configuration totals.

A merchant's listed price always beats the price a client submits. The
aggregator prices line items in the order given and stops at the first
component it cannot find.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence

from buildcost.catalog import CatalogStore
from buildcost.config import settings
from buildcost.errors import NotFoundError, ValidationError
from buildcost.models import Component
from buildcost.schemas import LineItemRequest

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT)


@dataclass(frozen=True)
class PricedLineItem:
    """A line item after price resolution, with display names attached."""

    component_id: int
    component_title: str
    category_name: str
    unit_price: Decimal
    selected_merchant_id: Optional[int] = None
    merchant_name: Optional[str] = None


@dataclass(frozen=True)
class AggregatedConfiguration:
    line_items: List[PricedLineItem] = field(default_factory=list)
    total_price: Decimal = Decimal("0.00")


class PriceResolver:
    """
    Decides the unit price of one component.

    With a merchant selected, that merchant's stored price wins. Without a
    stored price the client's fallback is used, unless strict mode is on,
    in which case the selection is rejected.
    """

    def __init__(self, catalog: CatalogStore, strict: Optional[bool] = None) -> None:
        self.catalog = catalog
        self.strict = settings.STRICT_MERCHANT_PRICES if strict is None else strict

    async def require_active_component(self, component_id: int) -> Component:
        component = await self.catalog.get_component(component_id)
        if component is None or not component.active:
            raise NotFoundError("Component", component_id)
        return component

    async def resolve_price(
        self,
        component_id: int,
        selected_merchant_id: Optional[int],
        fallback_price: Decimal,
    ) -> Decimal:
        """
        Return the authoritative unit price.

        Args:
            component_id: Component being priced
            selected_merchant_id: Merchant the client picked, if any
            fallback_price: Price the client submitted

        Raises:
            NotFoundError: component missing or inactive
            ValidationError: strict mode and the merchant lists no price
        """
        await self.require_active_component(component_id)
        return await self.price_for(component_id, selected_merchant_id, fallback_price)

    async def price_for(
        self,
        component_id: int,
        selected_merchant_id: Optional[int],
        fallback_price: Decimal,
    ) -> Decimal:
        """Same as `resolve_price` for a component the caller already checked."""
        if selected_merchant_id is None:
            return to_money(fallback_price)

        listed = await self.catalog.get_price(component_id, selected_merchant_id)
        if listed is not None:
            return to_money(listed.unit_price)

        if self.strict:
            raise ValidationError(
                f"Merchant {selected_merchant_id} has no listed price for component {component_id}"
            )

        logger.debug(
            f"[Pricing] No listed price for component {component_id} at merchant "
            f"{selected_merchant_id}, using submitted price {fallback_price}"
        )
        return to_money(fallback_price)


class ConfigurationAggregator:
    """Prices a list of line-item requests and totals them."""

    def __init__(self, catalog: CatalogStore, resolver: Optional[PriceResolver] = None) -> None:
        self.catalog = catalog
        self.resolver = resolver or PriceResolver(catalog)

    async def aggregate(self, requests: Sequence[LineItemRequest]) -> AggregatedConfiguration:
        """
        Resolve every request in order and sum the results.

        Nothing is returned unless every line prices successfully.
        """
        if not requests:
            raise ValidationError("At least one component is required")

        line_items: List[PricedLineItem] = []
        total = Decimal("0.00")

        for request in requests:
            component = await self.resolver.require_active_component(request.component_id)
            category = await self.catalog.get_category(component.category_id)
            if category is None:
                raise NotFoundError("Category", component.category_id)

            merchant_name = None
            if request.selected_merchant_id is not None:
                merchant = await self.catalog.get_merchant(request.selected_merchant_id)
                if merchant is None:
                    raise NotFoundError("Merchant", request.selected_merchant_id)
                merchant_name = merchant.name

            unit_price = await self.resolver.price_for(
                component.id, request.selected_merchant_id, request.price
            )

            line_items.append(
                PricedLineItem(
                    component_id=component.id,
                    component_title=component.title,
                    category_name=category.name,
                    unit_price=unit_price,
                    selected_merchant_id=request.selected_merchant_id,
                    merchant_name=merchant_name,
                )
            )
            total += unit_price

        logger.debug(f"[Pricing] Aggregated {len(line_items)} line items, total {total}")
        return AggregatedConfiguration(line_items=line_items, total_price=to_money(total))
