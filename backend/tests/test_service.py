"""
Tests for the configuration lifecycle service
"""
from decimal import Decimal
from io import BytesIO

import pytest
from openpyxl import load_workbook

from buildcost.auth import ANONYMOUS
from buildcost.errors import (
    AuthenticationError,
    ExternalRenderError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from buildcost.schemas import ConfigurationCreate, ConfigurationUpdate, LineItemRequest
from buildcost.service import ConfigurationService

from conftest import ADMIN, USER_A, USER_B


def build_payload(seeded, **overrides):
    data = {
        "name": "Gaming PC",
        "line_items": [
            {"component_id": seeded.cpu_id, "selected_merchant_id": seeded.shop_id, "price": 1},
            {"component_id": seeded.gpu_id, "price": "599.99"},
        ],
        "notes": "Quiet build",
    }
    data.update(overrides)
    return ConfigurationCreate(**data)


class BrokenRenderer:
    media_type = "application/octet-stream"
    extension = "bin"

    def render(self, document):
        raise RuntimeError("renderer crashed")


@pytest.mark.asyncio
async def test_create_prices_and_owns_configuration(db, seeded):
    service = ConfigurationService(db)

    record = await service.create(USER_A, build_payload(seeded))

    configuration = record.configuration
    assert configuration.owner_id == USER_A.id
    assert configuration.is_public is False
    assert configuration.total_price == Decimal("1249.99")
    assert [line.unit_price for line in record.line_items] == [Decimal("650.00"), Decimal("599.99")]


@pytest.mark.asyncio
async def test_create_requires_authentication(db, seeded):
    service = ConfigurationService(db)

    with pytest.raises(AuthenticationError):
        await service.create(ANONYMOUS, build_payload(seeded))


@pytest.mark.asyncio
async def test_create_with_missing_component_saves_nothing(db, seeded):
    service = ConfigurationService(db)
    payload = build_payload(
        seeded,
        line_items=[
            {"component_id": seeded.cpu_id, "price": 100},
            {"component_id": 9999, "price": 100},
        ],
    )

    with pytest.raises(NotFoundError):
        await service.create(USER_A, payload)

    assert await service.list_mine(USER_A) == []


@pytest.mark.asyncio
async def test_private_configuration_visibility(db, seeded):
    service = ConfigurationService(db)
    created = await service.create(USER_A, build_payload(seeded))
    configuration_id = created.configuration.id

    assert (await service.get(USER_A, configuration_id)).configuration.id == configuration_id
    assert (await service.get(ADMIN, configuration_id)).configuration.id == configuration_id
    with pytest.raises(ForbiddenError):
        await service.get(USER_B, configuration_id)
    with pytest.raises(ForbiddenError):
        await service.get(ANONYMOUS, configuration_id)


@pytest.mark.asyncio
async def test_public_configuration_readable_but_not_writable_by_others(db, seeded):
    service = ConfigurationService(db)
    created = await service.create(USER_A, build_payload(seeded))
    configuration_id = created.configuration.id

    await service.update(USER_A, configuration_id, ConfigurationUpdate(is_public=True))

    record = await service.get(ANONYMOUS, configuration_id)
    assert record.configuration.owner_id == USER_A.id
    with pytest.raises(ForbiddenError):
        await service.update(USER_B, configuration_id, ConfigurationUpdate(name="Mine now"))
    with pytest.raises(ForbiddenError):
        await service.delete(USER_B, configuration_id)


@pytest.mark.asyncio
async def test_missing_configuration_is_not_found(db, seeded):
    service = ConfigurationService(db)

    with pytest.raises(NotFoundError):
        await service.get(USER_A, 404)
    with pytest.raises(NotFoundError):
        await service.update(USER_A, 404, ConfigurationUpdate(name="Nope"))
    with pytest.raises(NotFoundError):
        await service.delete(USER_A, 404)
    with pytest.raises(NotFoundError):
        await service.export(USER_A, 404)


@pytest.mark.asyncio
async def test_listings(db, seeded):
    service = ConfigurationService(db)
    await service.create(USER_A, build_payload(seeded, name="Private A"))
    await service.create(USER_A, build_payload(seeded, name="Public A", is_public=True))
    await service.create(USER_B, build_payload(seeded, name="Private B"))

    mine = await service.list_mine(USER_A)
    assert sorted(r.configuration.name for r in mine) == ["Private A", "Public A"]

    public = await service.list_public()
    assert [r.configuration.name for r in public] == ["Public A"]

    everything = await service.list_all(ADMIN)
    assert len(everything) == 3
    with pytest.raises(ForbiddenError):
        await service.list_all(USER_A)


@pytest.mark.asyncio
async def test_update_line_items_recomputes_total(db, seeded):
    service = ConfigurationService(db)
    created = await service.create(USER_A, build_payload(seeded))
    configuration_id = created.configuration.id

    updated = await service.update(
        USER_A,
        configuration_id,
        ConfigurationUpdate(
            line_items=[LineItemRequest(component_id=seeded.gpu_id, price=Decimal("549.00"))]
        ),
    )

    assert len(updated.line_items) == 1
    assert updated.configuration.total_price == Decimal("549.00")
    assert updated.configuration.total_price == sum(l.unit_price for l in updated.line_items)
    assert updated.configuration.name == "Gaming PC"


@pytest.mark.asyncio
async def test_update_other_fields_keeps_line_items(db, seeded):
    service = ConfigurationService(db)
    created = await service.create(USER_A, build_payload(seeded))

    updated = await service.update(
        USER_A, created.configuration.id, ConfigurationUpdate(name="Renamed", notes="Updated")
    )

    assert updated.configuration.name == "Renamed"
    assert updated.configuration.notes == "Updated"
    assert updated.configuration.total_price == Decimal("1249.99")
    assert len(updated.line_items) == 2


@pytest.mark.asyncio
async def test_null_clears_notes_but_not_name(db, seeded):
    service = ConfigurationService(db)
    created = await service.create(USER_A, build_payload(seeded))

    updated = await service.update(
        USER_A,
        created.configuration.id,
        ConfigurationUpdate(name=None, is_public=None, notes=None),
    )

    assert updated.configuration.notes is None
    assert updated.configuration.name == "Gaming PC"
    assert updated.configuration.is_public is False


@pytest.mark.asyncio
async def test_failed_update_leaves_configuration_unchanged(db, seeded):
    service = ConfigurationService(db)
    created = await service.create(USER_A, build_payload(seeded))
    configuration_id = created.configuration.id

    with pytest.raises(ValidationError):
        await service.update(
            USER_A, configuration_id, ConfigurationUpdate(name="Changed", line_items=[])
        )

    record = await service.get(USER_A, configuration_id)
    assert record.configuration.name == "Gaming PC"
    assert record.configuration.total_price == Decimal("1249.99")
    assert len(record.line_items) == 2


@pytest.mark.asyncio
async def test_admin_can_update_and_delete_any_configuration(db, seeded):
    service = ConfigurationService(db)
    created = await service.create(USER_A, build_payload(seeded))
    configuration_id = created.configuration.id

    updated = await service.update(ADMIN, configuration_id, ConfigurationUpdate(name="Moderated"))
    assert updated.configuration.owner_id == USER_A.id

    await service.delete(ADMIN, configuration_id)
    with pytest.raises(NotFoundError):
        await service.get(USER_A, configuration_id)


@pytest.mark.asyncio
async def test_delete_is_permanent(db, seeded):
    service = ConfigurationService(db)
    created = await service.create(USER_A, build_payload(seeded))
    configuration_id = created.configuration.id

    await service.delete(USER_A, configuration_id)

    with pytest.raises(NotFoundError):
        await service.get(ADMIN, configuration_id)
    assert await service.list_all(ADMIN) == []


@pytest.mark.asyncio
async def test_preview_does_not_persist(db, seeded):
    service = ConfigurationService(db)

    priced = await service.preview(
        USER_A, [LineItemRequest(component_id=seeded.cpu_id, selected_merchant_id=seeded.shop_id, price=Decimal("1"))]
    )

    assert priced.total_price == Decimal("650.00")
    assert await service.list_all(ADMIN) == []


@pytest.mark.asyncio
async def test_export_renders_workbook(db, seeded):
    service = ConfigurationService(db)
    created = await service.create(USER_A, build_payload(seeded))

    content, filename, media_type = await service.export(USER_A, created.configuration.id)

    assert filename == "configuration-Gaming PC.xlsx"
    assert media_type.endswith("spreadsheetml.sheet")
    ws = load_workbook(BytesIO(content)).active
    assert ws["A2"].value == "Name: Gaming PC"
    assert ws.cell(row=8, column=2).value == "Intel Core i9-12900K"
    assert ws.cell(row=8, column=4).value == "LDLC"
    assert ws.cell(row=9, column=5).value == 599.99


@pytest.mark.asyncio
async def test_export_of_public_configuration_still_requires_ownership(db, seeded):
    service = ConfigurationService(db)
    created = await service.create(USER_A, build_payload(seeded, is_public=True))

    with pytest.raises(ForbiddenError):
        await service.export(USER_B, created.configuration.id)
    content, _, _ = await service.export(ADMIN, created.configuration.id)
    assert content


@pytest.mark.asyncio
async def test_export_wraps_renderer_failure(db, seeded):
    service = ConfigurationService(db, renderer=BrokenRenderer())
    created = await service.create(USER_A, build_payload(seeded))

    with pytest.raises(ExternalRenderError):
        await service.export(USER_A, created.configuration.id)
