"""
Configuration persistence.

Line items are read back with one explicit join against components,
categories and merchants, so callers get display names without
per-item lookups.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from buildcost.models import (
    Category,
    Component,
    Configuration,
    ConfigurationItem,
    Merchant,
    utcnow,
)
from buildcost.pricing import AggregatedConfiguration, PricedLineItem

logger = logging.getLogger(__name__)


@dataclass
class ConfigurationRecord:
    """A stored configuration with its ordered, priced line items."""

    configuration: Configuration
    line_items: List[PricedLineItem] = field(default_factory=list)


@dataclass
class ConfigurationPatch:
    """
    Changes applied by `update_by_id`.

    `priced` replaces both the line items and the total when set.
    """

    fields: Dict[str, Any] = field(default_factory=dict)
    priced: Optional[AggregatedConfiguration] = None


class ConfigurationRepository:
    """Async storage for configurations within one session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(
        self,
        owner_id: int,
        name: str,
        priced: AggregatedConfiguration,
        is_public: bool = False,
        notes: Optional[str] = None,
    ) -> ConfigurationRecord:
        configuration = Configuration(
            owner_id=owner_id,
            name=name,
            total_price=priced.total_price,
            is_public=is_public,
            notes=notes,
        )
        self.db.add(configuration)
        await self.db.flush()

        self._add_items(configuration.id, priced.line_items)
        await self.db.flush()
        await self.db.refresh(configuration)

        logger.info(
            f"[DB] Saved configuration {configuration.id} for user {owner_id} "
            f"({len(priced.line_items)} items, total {priced.total_price})"
        )
        return ConfigurationRecord(configuration, list(priced.line_items))

    async def find_by_id(self, configuration_id: int) -> Optional[ConfigurationRecord]:
        configuration = await self.db.get(Configuration, configuration_id)
        if configuration is None:
            return None
        return (await self._with_items([configuration]))[0]

    async def find_by_owner(self, owner_id: int) -> List[ConfigurationRecord]:
        stmt = (
            select(Configuration)
            .where(Configuration.owner_id == owner_id)
            .order_by(Configuration.created_at.desc(), Configuration.id.desc())
        )
        return await self._records(stmt)

    async def find_all(self) -> List[ConfigurationRecord]:
        stmt = select(Configuration).order_by(
            Configuration.created_at.desc(), Configuration.id.desc()
        )
        return await self._records(stmt)

    async def find_public(self) -> List[ConfigurationRecord]:
        stmt = (
            select(Configuration)
            .where(Configuration.is_public.is_(True))
            .order_by(Configuration.created_at.desc(), Configuration.id.desc())
        )
        return await self._records(stmt)

    async def update_by_id(
        self, configuration_id: int, patch: ConfigurationPatch
    ) -> Optional[ConfigurationRecord]:
        """
        Apply `patch` as one locked read-modify-write.

        Line items and total are replaced together or not at all.
        """
        stmt = (
            select(Configuration)
            .where(Configuration.id == configuration_id)
            .with_for_update()
        )
        result = await self.db.execute(stmt)
        configuration = result.scalar_one_or_none()
        if configuration is None:
            return None

        for name, value in patch.fields.items():
            setattr(configuration, name, value)

        if patch.priced is not None:
            await self.db.execute(
                delete(ConfigurationItem).where(
                    ConfigurationItem.configuration_id == configuration_id
                )
            )
            self._add_items(configuration_id, patch.priced.line_items)
            configuration.total_price = patch.priced.total_price

        configuration.updated_at = utcnow()
        await self.db.flush()
        await self.db.refresh(configuration)

        logger.info(f"[DB] Updated configuration {configuration_id}")
        return (await self._with_items([configuration]))[0]

    async def delete_by_id(self, configuration_id: int) -> bool:
        await self.db.execute(
            delete(ConfigurationItem).where(
                ConfigurationItem.configuration_id == configuration_id
            )
        )
        result = await self.db.execute(
            delete(Configuration).where(Configuration.id == configuration_id)
        )
        await self.db.flush()
        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"[DB] Deleted configuration {configuration_id}")
        return deleted

    def _add_items(self, configuration_id: int, line_items: Sequence[PricedLineItem]) -> None:
        for position, item in enumerate(line_items):
            self.db.add(
                ConfigurationItem(
                    configuration_id=configuration_id,
                    position=position,
                    component_id=item.component_id,
                    merchant_id=item.selected_merchant_id,
                    unit_price=item.unit_price,
                )
            )

    async def _records(self, stmt) -> List[ConfigurationRecord]:
        result = await self.db.execute(stmt)
        return await self._with_items(list(result.scalars().all()))

    async def _with_items(
        self, configurations: List[Configuration]
    ) -> List[ConfigurationRecord]:
        """Attach line items to each configuration, keeping stored order."""
        if not configurations:
            return []

        ids = [configuration.id for configuration in configurations]
        stmt = (
            select(ConfigurationItem, Component.title, Category.name, Merchant.name)
            .join(Component, Component.id == ConfigurationItem.component_id)
            .join(Category, Category.id == Component.category_id)
            .outerjoin(Merchant, Merchant.id == ConfigurationItem.merchant_id)
            .where(ConfigurationItem.configuration_id.in_(ids))
            .order_by(ConfigurationItem.configuration_id, ConfigurationItem.position)
        )
        result = await self.db.execute(stmt)

        items_by_configuration: Dict[int, List[PricedLineItem]] = defaultdict(list)
        for item, component_title, category_name, merchant_name in result.all():
            items_by_configuration[item.configuration_id].append(
                PricedLineItem(
                    component_id=item.component_id,
                    component_title=component_title,
                    category_name=category_name,
                    unit_price=item.unit_price,
                    selected_merchant_id=item.merchant_id,
                    merchant_name=merchant_name,
                )
            )

        return [
            ConfigurationRecord(configuration, items_by_configuration[configuration.id])
            for configuration in configurations
        ]
