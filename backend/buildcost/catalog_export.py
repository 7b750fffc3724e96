"""
Dump the whole catalog into an Excel workbook, one sheet per entity.
"""
from io import BytesIO
from typing import Any, Dict, List

from openpyxl.styles import Font
from openpyxl.workbook import Workbook
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from buildcost.models import Category, Component, Merchant, Price

# Merchant.api_key is deliberately absent
SHEETS: Dict[str, List[str]] = {
    "Categories": ["id", "name", "description", "active"],
    "Components": ["id", "category", "brand", "model", "title", "specifications", "image_url", "active"],
    "Merchants": ["id", "name", "url", "commission_rate", "sync_frequency", "last_sync", "active"],
    "Prices": ["id", "component", "merchant", "unit_price", "product_url", "in_stock", "last_updated"],
}


async def collect_catalog_rows(db: AsyncSession) -> Dict[str, List[Dict[str, Any]]]:
    """Read every catalog table, replacing foreign keys with display names."""
    categories = (await db.execute(select(Category).order_by(Category.id))).scalars().all()
    merchants = (await db.execute(select(Merchant).order_by(Merchant.id))).scalars().all()
    category_names = {c.id: c.name for c in categories}
    merchant_names = {m.id: m.name for m in merchants}

    components = (await db.execute(select(Component).order_by(Component.id))).scalars().all()
    component_titles = {c.id: c.title for c in components}
    prices = (await db.execute(select(Price).order_by(Price.id))).scalars().all()

    return {
        "Categories": [
            {"id": c.id, "name": c.name, "description": c.description, "active": c.active}
            for c in categories
        ],
        "Components": [
            {
                "id": c.id,
                "category": category_names.get(c.category_id, ""),
                "brand": c.brand,
                "model": c.model,
                "title": c.title,
                "specifications": ", ".join(f"{k}: {v}" for k, v in (c.specifications or {}).items()),
                "image_url": c.image_url,
                "active": c.active,
            }
            for c in components
        ],
        "Merchants": [
            {
                "id": m.id,
                "name": m.name,
                "url": m.url,
                "commission_rate": float(m.commission_rate),
                "sync_frequency": m.sync_frequency,
                "last_sync": m.last_sync,
                "active": m.active,
            }
            for m in merchants
        ],
        "Prices": [
            {
                "id": p.id,
                "component": component_titles.get(p.component_id, ""),
                "merchant": merchant_names.get(p.merchant_id, ""),
                "unit_price": float(p.unit_price),
                "product_url": p.product_url,
                "in_stock": p.in_stock,
                "last_updated": p.last_updated,
            }
            for p in prices
        ],
    }


def build_catalog_workbook(rows: Dict[str, List[Dict[str, Any]]]) -> bytes:
    wb = Workbook()
    wb.remove(wb.active)

    for sheet_name, columns in SHEETS.items():
        ws = wb.create_sheet(sheet_name)
        ws.append(columns)
        for cell in ws[1]:
            cell.font = Font(bold=True)
        for row in rows.get(sheet_name, []):
            ws.append([row.get(column) for column in columns])

    output = BytesIO()
    wb.save(output)
    return output.getvalue()
