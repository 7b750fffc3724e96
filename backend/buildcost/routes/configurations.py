"""
Saved build endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from buildcost.auth import Actor, get_actor
from buildcost.database import get_db
from buildcost.pricing import PricedLineItem
from buildcost.rendering import DocumentRenderer, XlsxConfigurationRenderer
from buildcost.repository import ConfigurationRecord
from buildcost.schemas import (
    ConfigurationCreate,
    ConfigurationOut,
    ConfigurationUpdate,
    ErrorResponse,
    LineItemOut,
    PriceCalculationOut,
    PriceCalculationRequest,
)
from buildcost.service import ConfigurationService

router = APIRouter(prefix="/configurations", tags=["Configurations"])

# Shared renderer; stateless
xlsx_renderer = XlsxConfigurationRenderer()


def get_renderer() -> DocumentRenderer:
    return xlsx_renderer


async def get_service(
    db: AsyncSession = Depends(get_db),
    renderer: DocumentRenderer = Depends(get_renderer),
) -> ConfigurationService:
    return ConfigurationService(db, renderer=renderer)


def line_item_to_out(item: PricedLineItem) -> LineItemOut:
    return LineItemOut(
        component_id=item.component_id,
        component_title=item.component_title,
        category_name=item.category_name,
        selected_merchant_id=item.selected_merchant_id,
        merchant_name=item.merchant_name,
        unit_price=item.unit_price,
    )


def record_to_out(record: ConfigurationRecord) -> ConfigurationOut:
    configuration = record.configuration
    return ConfigurationOut(
        id=configuration.id,
        owner_id=configuration.owner_id,
        name=configuration.name,
        line_items=[line_item_to_out(item) for item in record.line_items],
        total_price=configuration.total_price,
        is_public=configuration.is_public,
        notes=configuration.notes,
        created_at=configuration.created_at,
        updated_at=configuration.updated_at,
    )


ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    401: {"model": ErrorResponse, "description": "Not logged in"},
    403: {"model": ErrorResponse, "description": "Not allowed"},
    404: {"model": ErrorResponse, "description": "Not found"},
}


@router.get("/public", response_model=List[ConfigurationOut])
async def list_public_configurations(
    service: ConfigurationService = Depends(get_service),
) -> List[ConfigurationOut]:
    return [record_to_out(r) for r in await service.list_public()]


@router.get("/admin/all", response_model=List[ConfigurationOut], responses=ERRORS)
async def list_all_configurations(
    actor: Actor = Depends(get_actor),
    service: ConfigurationService = Depends(get_service),
) -> List[ConfigurationOut]:
    return [record_to_out(r) for r in await service.list_all(actor)]


@router.get("", response_model=List[ConfigurationOut], responses=ERRORS)
async def list_my_configurations(
    actor: Actor = Depends(get_actor),
    service: ConfigurationService = Depends(get_service),
) -> List[ConfigurationOut]:
    return [record_to_out(r) for r in await service.list_mine(actor)]


@router.post(
    "",
    response_model=ConfigurationOut,
    status_code=status.HTTP_201_CREATED,
    responses=ERRORS,
)
async def create_configuration(
    body: ConfigurationCreate,
    actor: Actor = Depends(get_actor),
    service: ConfigurationService = Depends(get_service),
) -> ConfigurationOut:
    """
    Save a build.

    Merchant prices override submitted prices; the total is always
    computed server-side.
    """
    return record_to_out(await service.create(actor, body))


@router.post("/calculate-price", response_model=PriceCalculationOut, responses=ERRORS)
async def calculate_price(
    body: PriceCalculationRequest,
    actor: Actor = Depends(get_actor),
    service: ConfigurationService = Depends(get_service),
) -> PriceCalculationOut:
    """Price a build without saving it."""
    priced = await service.preview(actor, body.line_items)
    return PriceCalculationOut(
        line_items=[line_item_to_out(item) for item in priced.line_items],
        total_price=priced.total_price,
    )


@router.get("/{configuration_id}", response_model=ConfigurationOut, responses=ERRORS)
async def get_configuration(
    configuration_id: int,
    actor: Actor = Depends(get_actor),
    service: ConfigurationService = Depends(get_service),
) -> ConfigurationOut:
    return record_to_out(await service.get(actor, configuration_id))


@router.patch("/{configuration_id}", response_model=ConfigurationOut, responses=ERRORS)
async def update_configuration(
    configuration_id: int,
    body: ConfigurationUpdate,
    actor: Actor = Depends(get_actor),
    service: ConfigurationService = Depends(get_service),
) -> ConfigurationOut:
    return record_to_out(await service.update(actor, configuration_id, body))


@router.delete(
    "/{configuration_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=ERRORS,
)
async def delete_configuration(
    configuration_id: int,
    actor: Actor = Depends(get_actor),
    service: ConfigurationService = Depends(get_service),
) -> Response:
    await service.delete(actor, configuration_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{configuration_id}/export",
    responses={**ERRORS, 502: {"model": ErrorResponse, "description": "Rendering failed"}},
)
async def export_configuration(
    configuration_id: int,
    actor: Actor = Depends(get_actor),
    service: ConfigurationService = Depends(get_service),
) -> Response:
    content, filename, media_type = await service.export(actor, configuration_id)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
