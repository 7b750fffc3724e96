"""
Catalog store: categories, components, merchants and their prices.

Lookups return None for missing rows; only the maintenance methods used
by admin endpoints raise NotFoundError.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from buildcost.errors import NotFoundError, ValidationError
from buildcost.models import Base, Category, Component, Merchant, Price, utcnow

logger = logging.getLogger(__name__)


class CatalogStore:
    """Read and maintain catalog rows within one database session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # --- Lookups ---

    async def get_category(self, category_id: int) -> Optional[Category]:
        return await self.db.get(Category, category_id)

    async def get_component(self, component_id: int) -> Optional[Component]:
        return await self.db.get(Component, component_id)

    async def get_merchant(self, merchant_id: int) -> Optional[Merchant]:
        return await self.db.get(Merchant, merchant_id)

    async def get_price(self, component_id: int, merchant_id: int) -> Optional[Price]:
        """The unique price row for a (component, merchant) pair, if any."""
        stmt = select(Price).where(
            Price.component_id == component_id, Price.merchant_id == merchant_id
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_price_by_id(self, price_id: int) -> Optional[Price]:
        return await self.db.get(Price, price_id)

    # --- Categories ---

    async def list_categories(self) -> List[Category]:
        stmt = select(Category).where(Category.active.is_(True)).order_by(Category.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def require_category(self, category_id: int) -> Category:
        category = await self.get_category(category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        return category

    async def create_category(self, data: Dict[str, Any]) -> Category:
        category = Category(**data)
        await self._insert(category)
        logger.info(f"[Catalog] Created category {category.name} (id={category.id})")
        return category

    async def update_category(self, category_id: int, data: Dict[str, Any]) -> Category:
        category = await self.require_category(category_id)
        await self._apply(category, data)
        return category

    async def deactivate_category(self, category_id: int) -> None:
        category = await self.require_category(category_id)
        await self._apply(category, {"active": False})
        logger.info(f"[Catalog] Deactivated category {category_id}")

    # --- Components ---

    async def list_components(self, category_id: Optional[int] = None) -> List[Component]:
        stmt = select(Component).where(Component.active.is_(True))
        if category_id is not None:
            stmt = stmt.where(Component.category_id == category_id)
        result = await self.db.execute(stmt.order_by(Component.id))
        return list(result.scalars().all())

    async def require_component(self, component_id: int) -> Component:
        component = await self.get_component(component_id)
        if component is None:
            raise NotFoundError("Component", component_id)
        return component

    async def get_component_detail(
        self, component_id: int
    ) -> Tuple[Component, Category, List[Tuple[Price, str]]]:
        """A component with its category and every merchant offer."""
        component = await self.require_component(component_id)
        category = await self.require_category(component.category_id)

        stmt = (
            select(Price, Merchant.name)
            .join(Merchant, Merchant.id == Price.merchant_id)
            .where(Price.component_id == component_id)
            .order_by(Price.unit_price)
        )
        result = await self.db.execute(stmt)
        offers = [(price, merchant_name) for price, merchant_name in result.all()]
        return component, category, offers

    async def create_component(self, data: Dict[str, Any]) -> Component:
        await self.require_category(data["category_id"])
        component = Component(**data)
        await self._insert(component)
        logger.info(f"[Catalog] Created component {component.title} (id={component.id})")
        return component

    async def update_component(self, component_id: int, data: Dict[str, Any]) -> Component:
        component = await self.require_component(component_id)
        if data.get("category_id") is not None:
            await self.require_category(data["category_id"])
        await self._apply(component, data)
        return component

    async def deactivate_component(self, component_id: int) -> None:
        component = await self.require_component(component_id)
        await self._apply(component, {"active": False})
        logger.info(f"[Catalog] Deactivated component {component_id}")

    # --- Merchants ---

    async def list_merchants(self) -> List[Merchant]:
        stmt = select(Merchant).where(Merchant.active.is_(True)).order_by(Merchant.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def require_merchant(self, merchant_id: int) -> Merchant:
        merchant = await self.get_merchant(merchant_id)
        if merchant is None:
            raise NotFoundError("Merchant", merchant_id)
        return merchant

    async def create_merchant(self, data: Dict[str, Any]) -> Merchant:
        merchant = Merchant(**data)
        await self._insert(merchant)
        logger.info(f"[Catalog] Created merchant {merchant.name} (id={merchant.id})")
        return merchant

    async def update_merchant(self, merchant_id: int, data: Dict[str, Any]) -> Merchant:
        merchant = await self.require_merchant(merchant_id)
        await self._apply(merchant, data)
        return merchant

    async def deactivate_merchant(self, merchant_id: int) -> None:
        merchant = await self.require_merchant(merchant_id)
        await self._apply(merchant, {"active": False})
        logger.info(f"[Catalog] Deactivated merchant {merchant_id}")

    # --- Prices ---

    async def list_prices(self) -> List[Price]:
        result = await self.db.execute(select(Price).order_by(Price.id))
        return list(result.scalars().all())

    async def require_price(self, price_id: int) -> Price:
        price = await self.get_price_by_id(price_id)
        if price is None:
            raise NotFoundError("Price", price_id)
        return price

    async def create_price(self, data: Dict[str, Any]) -> Price:
        await self.require_component(data["component_id"])
        await self.require_merchant(data["merchant_id"])
        price = Price(**data)
        await self._insert(price)
        logger.info(
            f"[Catalog] Listed component {price.component_id} at merchant "
            f"{price.merchant_id} for {price.unit_price}"
        )
        return price

    async def update_price(self, price_id: int, data: Dict[str, Any]) -> Price:
        price = await self.require_price(price_id)
        await self._apply(price, {**data, "last_updated": utcnow()})
        return price

    async def delete_price(self, price_id: int) -> None:
        price = await self.require_price(price_id)
        await self.db.delete(price)
        await self.db.flush()
        logger.info(f"[Catalog] Deleted price {price_id}")

    # --- Helpers ---

    async def _insert(self, row: Base) -> None:
        self.db.add(row)
        await self._flush(row)

    async def _apply(self, row: Base, data: Dict[str, Any]) -> None:
        """Set the given fields; an explicit None on a NOT NULL column is ignored."""
        columns = row.__table__.columns
        for field, value in data.items():
            if value is None and not columns[field].nullable:
                continue
            setattr(row, field, value)
        await self._flush(row)

    async def _flush(self, row: Base) -> None:
        """Flush pending writes, turning integrity errors into ValidationError."""
        entity = type(row).__name__
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            reason = str(e.orig)
            logger.info(f"[Catalog] Rejected {entity} write: {reason}")
            if is_unique_violation(reason):
                raise ValidationError(f"Duplicate value for {entity}. Please use another value.")
            raise ValidationError(f"Invalid value for {entity}")
        await self.db.refresh(row)


def is_unique_violation(reason: str) -> bool:
    # SQLite: "UNIQUE constraint failed", PostgreSQL: "duplicate key value"
    reason = reason.lower()
    return "unique constraint" in reason or "duplicate key" in reason
