#!/usr/bin/env python3
"""
Export the catalog (categories, components, merchants, prices) to Excel.

Usage:
    python export_catalog.py [--output exported_catalog.xlsx]
"""
import argparse
import asyncio
import logging
from pathlib import Path

from buildcost.catalog_export import build_catalog_workbook, collect_catalog_rows
from buildcost.database import AsyncSessionLocal, engine
from buildcost.logging_config import setup_logging

logger = logging.getLogger("buildcost.export_catalog")


async def export_catalog(output: Path) -> Path:
    async with AsyncSessionLocal() as session:
        rows = await collect_catalog_rows(session)

    output.write_bytes(build_catalog_workbook(rows))
    counts = ", ".join(f"{len(v)} {k.lower()}" for k, v in rows.items())
    logger.info(f"[Export] Wrote {counts} to {output}")
    return output


async def main() -> None:
    parser = argparse.ArgumentParser(description="Export the component catalog to xlsx")
    parser.add_argument("--output", default="exported_catalog.xlsx", help="Destination file")
    args = parser.parse_args()

    setup_logging()
    try:
        await export_catalog(Path(args.output))
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
