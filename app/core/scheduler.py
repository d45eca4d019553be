from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.core.config import SNAPSHOT_PATH, SNAPSHOT_FLUSH_MINUTES
from app.core.db import AsyncSessionLocal
from app.services.support.snapshot_service import write_snapshot

scheduler = AsyncIOScheduler()


@scheduler.scheduled_job("interval", minutes=SNAPSHOT_FLUSH_MINUTES, id="snapshot_flush")
async def snapshot_flush_job():
    async with AsyncSessionLocal() as db:
        await write_snapshot(db, SNAPSHOT_PATH)
