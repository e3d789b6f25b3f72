import asyncio
import logging

from simcal.config import settings
from simcal.database import SessionLocal
from simcal.services.reminder_service import reminder_service

logger = logging.getLogger(__name__)


def run_once() -> int:
    db = SessionLocal()
    try:
        return reminder_service.dispatch_due(db)
    finally:
        db.close()


async def reminder_loop(stop_event: asyncio.Event, poll_seconds: float | None = None):
    interval = poll_seconds or settings.REMINDER_POLL_SECONDS
    logger.info(f"Reminder dispatcher started (every {interval}s)")
    while not stop_event.is_set():
        try:
            await asyncio.to_thread(run_once)
        except Exception:
            logger.exception("Reminder dispatch failed; retrying on next tick")
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            continue
    logger.info("Reminder dispatcher stopped")
