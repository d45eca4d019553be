"""Load a legacy data.json document into the database.

Usage: python -m app.scripts.import_snapshot path/to/data.json
"""
from app import models  # noqa: F401
from app.core.db import AsyncSessionLocal
from app.services.support.snapshot_service import import_state
import asyncio
import json
import sys

async def import_file(path: str):
    with open(path, encoding="utf-8") as fh:
        document = json.load(fh)

    async with AsyncSessionLocal() as session:
        counts = await import_state(session, document)

    for collection, count in counts.items():
        print(f"{collection}: {count}")

if __name__ == "__main__":
    if len(sys.argv) != 2:
        sys.exit("usage: python -m app.scripts.import_snapshot <data.json>")
    asyncio.run(import_file(sys.argv[1]))
