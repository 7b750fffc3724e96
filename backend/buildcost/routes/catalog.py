"""
Catalog endpoints.

Anyone may browse; only admins may change the catalog. Categories,
components and merchants are deactivated rather than deleted.
"""
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from buildcost.access import require_admin
from buildcost.auth import Actor, get_actor
from buildcost.catalog import CatalogStore
from buildcost.database import get_db
from buildcost.schemas import (
    CategoryCreate,
    CategoryOut,
    CategoryUpdate,
    ComponentCreate,
    ComponentDetailOut,
    ComponentOut,
    ComponentUpdate,
    MerchantCreate,
    MerchantOut,
    MerchantPriceOut,
    MerchantUpdate,
    PriceCreate,
    PriceOut,
    PriceUpdate,
)

router = APIRouter()


async def get_catalog(db: AsyncSession = Depends(get_db)) -> CatalogStore:
    return CatalogStore(db)


# --- Categories ---

@router.get("/categories", response_model=List[CategoryOut], tags=["Categories"])
async def list_categories(catalog: CatalogStore = Depends(get_catalog)) -> List[CategoryOut]:
    return [CategoryOut.model_validate(c) for c in await catalog.list_categories()]


@router.get("/categories/{category_id}", response_model=CategoryOut, tags=["Categories"])
async def get_category(
    category_id: int, catalog: CatalogStore = Depends(get_catalog)
) -> CategoryOut:
    return CategoryOut.model_validate(await catalog.require_category(category_id))


@router.post(
    "/categories",
    response_model=CategoryOut,
    status_code=status.HTTP_201_CREATED,
    tags=["Categories"],
)
async def create_category(
    body: CategoryCreate,
    actor: Actor = Depends(get_actor),
    catalog: CatalogStore = Depends(get_catalog),
) -> CategoryOut:
    require_admin(actor)
    return CategoryOut.model_validate(await catalog.create_category(body.model_dump()))


@router.patch("/categories/{category_id}", response_model=CategoryOut, tags=["Categories"])
async def update_category(
    category_id: int,
    body: CategoryUpdate,
    actor: Actor = Depends(get_actor),
    catalog: CatalogStore = Depends(get_catalog),
) -> CategoryOut:
    require_admin(actor)
    category = await catalog.update_category(category_id, body.model_dump(exclude_unset=True))
    return CategoryOut.model_validate(category)


@router.delete(
    "/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Categories"],
)
async def delete_category(
    category_id: int,
    actor: Actor = Depends(get_actor),
    catalog: CatalogStore = Depends(get_catalog),
) -> Response:
    require_admin(actor)
    await catalog.deactivate_category(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Components ---

@router.get("/components", response_model=List[ComponentOut], tags=["Components"])
async def list_components(catalog: CatalogStore = Depends(get_catalog)) -> List[ComponentOut]:
    return [ComponentOut.model_validate(c) for c in await catalog.list_components()]


@router.get(
    "/components/category/{category_id}",
    response_model=List[ComponentOut],
    tags=["Components"],
)
async def list_components_by_category(
    category_id: int, catalog: CatalogStore = Depends(get_catalog)
) -> List[ComponentOut]:
    components = await catalog.list_components(category_id=category_id)
    return [ComponentOut.model_validate(c) for c in components]


@router.get("/components/{component_id}", response_model=ComponentDetailOut, tags=["Components"])
async def get_component(
    component_id: int, catalog: CatalogStore = Depends(get_catalog)
) -> ComponentDetailOut:
    """A component with its category and every merchant offer, cheapest first."""
    component, category, offers = await catalog.get_component_detail(component_id)
    return ComponentDetailOut(
        **ComponentOut.model_validate(component).model_dump(),
        category=CategoryOut.model_validate(category),
        prices=[
            MerchantPriceOut(
                price_id=price.id,
                merchant_id=price.merchant_id,
                merchant_name=merchant_name,
                unit_price=price.unit_price,
                product_url=price.product_url,
                in_stock=price.in_stock,
                last_updated=price.last_updated,
            )
            for price, merchant_name in offers
        ],
    )


@router.post(
    "/components",
    response_model=ComponentOut,
    status_code=status.HTTP_201_CREATED,
    tags=["Components"],
)
async def create_component(
    body: ComponentCreate,
    actor: Actor = Depends(get_actor),
    catalog: CatalogStore = Depends(get_catalog),
) -> ComponentOut:
    require_admin(actor)
    return ComponentOut.model_validate(await catalog.create_component(body.model_dump()))


@router.patch("/components/{component_id}", response_model=ComponentOut, tags=["Components"])
async def update_component(
    component_id: int,
    body: ComponentUpdate,
    actor: Actor = Depends(get_actor),
    catalog: CatalogStore = Depends(get_catalog),
) -> ComponentOut:
    require_admin(actor)
    component = await catalog.update_component(
        component_id, body.model_dump(exclude_unset=True)
    )
    return ComponentOut.model_validate(component)


@router.delete(
    "/components/{component_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Components"],
)
async def delete_component(
    component_id: int,
    actor: Actor = Depends(get_actor),
    catalog: CatalogStore = Depends(get_catalog),
) -> Response:
    require_admin(actor)
    await catalog.deactivate_component(component_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Merchants ---

@router.get("/merchants", response_model=List[MerchantOut], tags=["Merchants"])
async def list_merchants(catalog: CatalogStore = Depends(get_catalog)) -> List[MerchantOut]:
    return [MerchantOut.model_validate(m) for m in await catalog.list_merchants()]


@router.get("/merchants/{merchant_id}", response_model=MerchantOut, tags=["Merchants"])
async def get_merchant(
    merchant_id: int, catalog: CatalogStore = Depends(get_catalog)
) -> MerchantOut:
    return MerchantOut.model_validate(await catalog.require_merchant(merchant_id))


@router.post(
    "/merchants",
    response_model=MerchantOut,
    status_code=status.HTTP_201_CREATED,
    tags=["Merchants"],
)
async def create_merchant(
    body: MerchantCreate,
    actor: Actor = Depends(get_actor),
    catalog: CatalogStore = Depends(get_catalog),
) -> MerchantOut:
    require_admin(actor)
    return MerchantOut.model_validate(await catalog.create_merchant(body.model_dump()))


@router.patch("/merchants/{merchant_id}", response_model=MerchantOut, tags=["Merchants"])
async def update_merchant(
    merchant_id: int,
    body: MerchantUpdate,
    actor: Actor = Depends(get_actor),
    catalog: CatalogStore = Depends(get_catalog),
) -> MerchantOut:
    require_admin(actor)
    merchant = await catalog.update_merchant(merchant_id, body.model_dump(exclude_unset=True))
    return MerchantOut.model_validate(merchant)


@router.delete(
    "/merchants/{merchant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Merchants"],
)
async def delete_merchant(
    merchant_id: int,
    actor: Actor = Depends(get_actor),
    catalog: CatalogStore = Depends(get_catalog),
) -> Response:
    require_admin(actor)
    await catalog.deactivate_merchant(merchant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Prices ---

@router.get("/prices", response_model=List[PriceOut], tags=["Prices"])
async def list_prices(catalog: CatalogStore = Depends(get_catalog)) -> List[PriceOut]:
    return [PriceOut.model_validate(p) for p in await catalog.list_prices()]


@router.get("/prices/{price_id}", response_model=PriceOut, tags=["Prices"])
async def get_price(price_id: int, catalog: CatalogStore = Depends(get_catalog)) -> PriceOut:
    return PriceOut.model_validate(await catalog.require_price(price_id))


@router.post(
    "/prices",
    response_model=PriceOut,
    status_code=status.HTTP_201_CREATED,
    tags=["Prices"],
)
async def create_price(
    body: PriceCreate,
    actor: Actor = Depends(get_actor),
    catalog: CatalogStore = Depends(get_catalog),
) -> PriceOut:
    require_admin(actor)
    return PriceOut.model_validate(await catalog.create_price(body.model_dump()))


@router.patch("/prices/{price_id}", response_model=PriceOut, tags=["Prices"])
async def update_price(
    price_id: int,
    body: PriceUpdate,
    actor: Actor = Depends(get_actor),
    catalog: CatalogStore = Depends(get_catalog),
) -> PriceOut:
    require_admin(actor)
    price = await catalog.update_price(price_id, body.model_dump(exclude_unset=True))
    return PriceOut.model_validate(price)


@router.delete("/prices/{price_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Prices"])
async def delete_price(
    price_id: int,
    actor: Actor = Depends(get_actor),
    catalog: CatalogStore = Depends(get_catalog),
) -> Response:
    """Prices are removed outright; they are not referenced by saved builds."""
    require_admin(actor)
    await catalog.delete_price(price_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
