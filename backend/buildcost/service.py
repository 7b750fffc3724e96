"""
Configuration lifecycle service.

Every method takes the calling actor explicitly and checks access through
`buildcost.access` before returning or changing anything.
"""
import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from buildcost.access import (
    authorize,
    authorize_read,
    authorize_write,
    Capability,
    require_admin,
    require_authenticated,
)
from buildcost.auth import Actor
from buildcost.catalog import CatalogStore
from buildcost.errors import ExternalRenderError, NotFoundError
from buildcost.pricing import AggregatedConfiguration, ConfigurationAggregator, PriceResolver
from buildcost.rendering import (
    ConfigurationDocument,
    DocumentRenderer,
    export_filename,
    XlsxConfigurationRenderer,
)
from buildcost.repository import ConfigurationPatch, ConfigurationRecord, ConfigurationRepository
from buildcost.schemas import ConfigurationCreate, ConfigurationUpdate, LineItemRequest

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = frozenset({"name", "is_public"})


class ConfigurationService:
    """Create, read, update, delete, price and export saved builds."""

    def __init__(
        self,
        db: AsyncSession,
        renderer: Optional[DocumentRenderer] = None,
        strict_prices: Optional[bool] = None,
    ) -> None:
        self.catalog = CatalogStore(db)
        self.aggregator = ConfigurationAggregator(
            self.catalog, PriceResolver(self.catalog, strict=strict_prices)
        )
        self.repository = ConfigurationRepository(db)
        self.renderer = renderer or XlsxConfigurationRenderer()

    async def preview(
        self, actor: Actor, line_items: Sequence[LineItemRequest]
    ) -> AggregatedConfiguration:
        """Price a build without saving it."""
        require_authenticated(actor)
        return await self.aggregator.aggregate(line_items)

    async def create(self, actor: Actor, payload: ConfigurationCreate) -> ConfigurationRecord:
        require_authenticated(actor)
        priced = await self.aggregator.aggregate(payload.line_items)
        return await self.repository.create(
            owner_id=actor.id,
            name=payload.name,
            priced=priced,
            is_public=payload.is_public,
            notes=payload.notes,
        )

    async def get(self, actor: Actor, configuration_id: int) -> ConfigurationRecord:
        record = await self._require(configuration_id)
        configuration = record.configuration
        authorize_read(actor, configuration.owner_id, configuration.is_public)
        return record

    async def list_mine(self, actor: Actor) -> List[ConfigurationRecord]:
        require_authenticated(actor)
        return await self.repository.find_by_owner(actor.id)

    async def list_all(self, actor: Actor) -> List[ConfigurationRecord]:
        require_admin(actor)
        return await self.repository.find_all()

    async def list_public(self) -> List[ConfigurationRecord]:
        return await self.repository.find_public()

    async def update(
        self, actor: Actor, configuration_id: int, payload: ConfigurationUpdate
    ) -> ConfigurationRecord:
        """
        Update a build.

        New line items are priced before anything is written, so a bad
        line leaves the stored build untouched.
        """
        record = await self._require(configuration_id)
        authorize_write(actor, record.configuration.owner_id)

        changes = payload.model_dump(exclude_unset=True, exclude={"line_items"})
        patch = ConfigurationPatch(
            fields={
                name: value for name, value in changes.items()
                if value is not None or name not in REQUIRED_FIELDS
            }
        )
        if payload.line_items is not None:
            patch.priced = await self.aggregator.aggregate(payload.line_items)

        updated = await self.repository.update_by_id(configuration_id, patch)
        if updated is None:
            raise NotFoundError("Configuration", configuration_id)
        return updated

    async def delete(self, actor: Actor, configuration_id: int) -> None:
        record = await self._require(configuration_id)
        authorize_write(actor, record.configuration.owner_id)
        if not await self.repository.delete_by_id(configuration_id):
            raise NotFoundError("Configuration", configuration_id)

    async def export(self, actor: Actor, configuration_id: int) -> Tuple[bytes, str, str]:
        """
        Render a build as a document.

        Only the owner or an admin may export; a public build is readable
        by anyone but not exportable by them.

        Returns:
            (content, filename, media type)
        """
        record = await self._require(configuration_id)
        configuration = record.configuration
        capability = Capability.READ_ANY if actor.is_admin else Capability.READ_OWN
        authorize(actor, configuration.owner_id, capability)

        document = ConfigurationDocument(
            configuration_id=configuration.id,
            name=configuration.name,
            created_at=configuration.created_at,
            total_price=configuration.total_price,
            notes=configuration.notes,
            line_items=record.line_items,
        )
        try:
            content = self.renderer.render(document)
        except Exception as e:
            logger.error(f"[Export] Rendering configuration {configuration_id} failed: {e}")
            raise ExternalRenderError("Could not render the configuration document") from e

        logger.info(f"[Export] Rendered configuration {configuration_id} ({len(content)} bytes)")
        return content, export_filename(document, self.renderer.extension), self.renderer.media_type

    async def _require(self, configuration_id: int) -> ConfigurationRecord:
        record = await self.repository.find_by_id(configuration_id)
        if record is None:
            raise NotFoundError("Configuration", configuration_id)
        return record
