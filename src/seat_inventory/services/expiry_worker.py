"""
Background worker for sweeping expired seat holds

Reads never depend on this worker: every availability check sweeps first
and treats a hold past its expiry as free. The worker only keeps the
reservations table from growing between requests.
"""
import asyncio
from typing import Optional

from seat_inventory.core.clock import Clock, utcnow
from seat_inventory.core.config import settings
from seat_inventory.core.database import Database
from seat_inventory.services.inventory_store import SeatInventoryStore
import logging

logger = logging.getLogger(__name__)


class ExpiryWorker:
    """Background worker for expiring seat holds"""

    def __init__(self, database: Database, clock: Clock = utcnow, interval: Optional[float] = None):
        self.database = database
        self.clock = clock
        self.interval = interval or settings.EXPIRY_SWEEP_INTERVAL_SECONDS
        self.running = False
        self.task = None

    async def start(self):
        """Start the background worker"""
        if self.running:
            logger.warning("⚠️  Expiry worker already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._run())
        logger.info(f"✅ Expiry worker started (interval: {self.interval}s)")

    async def stop(self):
        """Stop the background worker"""
        if not self.running:
            return

        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
        logger.info("🛑 Expiry worker stopped")

    async def _run(self):
        """Main worker loop"""
        while self.running:
            try:
                await self.sweep_once()
            except Exception as e:
                logger.error(f"❌ Error in expiry worker: {e}")
            await asyncio.sleep(self.interval)

    async def sweep_once(self) -> int:
        async with self.database.session() as db:
            async with db.begin():
                return await SeatInventoryStore(db, self.clock).sweep_expired_reservations()
