import asyncio
from datetime import timedelta
from licita.core.clock import Clock
from licita.core.logging_config import logger
from licita.crud import biddings as biddings_crud
from licita.crud.notifications import delete_read_before
from licita.db.database import Database
from licita.services.bidding_service import BiddingService
from licita.services.notifications import NotificationService

CLOSING_SOON_TOLERANCE = timedelta(minutes=30)


class BiddingScheduler:
    """
    Периодические задачи жизненного цикла лицитаций.

    Тело каждой задачи идемпотентно и берёт время из инжектируемых часов;
    фоновые циклы запускаются только через start(), не при создании объекта.
    """

    def __init__(
        self,
        database: Database,
        biddings: BiddingService,
        notifications: NotificationService,
        clock: Clock,
        sweep_interval_seconds: int = 300,
        retention_days: int = 30,
    ):
        self.database = database
        self.biddings = biddings
        self.notifications = notifications
        self.clock = clock
        self.sweep_interval_seconds = sweep_interval_seconds
        self.retention_days = retention_days
        self._tasks: list[asyncio.Task] = []

    async def _sweep(self, find_due, event: str, label: str) -> int:
        now = self.clock.now()
        async with self.database.session() as db:
            candidates = [bidding.id for bidding in await find_due(db, now)]

        moved = 0
        for bidding_id in candidates:
            # каждая лицитация в своей сессии: сбой одной не останавливает остальные
            try:
                async with self.database.session() as db:
                    bidding = await self.biddings.get_bidding(db, bidding_id)
                    target = await self.biddings.advance(db, bidding, event)
                    await db.commit()
                moved += 1
                logger.info(f"Scheduler: bidding {bidding_id} moved to {target}")
                await self.notifications.notify_admins(
                    "BIDDING_STATUS_CHANGED",
                    f"Bidding {label} automatically",
                    f"Bidding {bidding.bidding_number} is now {target}",
                    payload={"biddingId": bidding_id, "status": target},
                )
            except Exception as e:
                logger.error(f"Scheduler: failed to apply '{event}' to bidding {bidding_id}: {str(e)}")

        if candidates:
            logger.info(f"Scheduler: {moved}/{len(candidates)} biddings {label}")
        return moved

    async def sweep_open_transitions(self) -> int:
        return await self._sweep(biddings_crud.find_due_for_opening, "open_for_proposals", "opened")

    async def sweep_close_transitions(self) -> int:
        return await self._sweep(biddings_crud.find_due_for_closing, "close_for_proposals", "closed")

    async def notify_closing_soon(self, hours_left: int) -> int:
        target = self.clock.now() + timedelta(hours=hours_left)
        try:
            async with self.database.session() as db:
                biddings = await biddings_crud.find_closing_between(
                    db, target - CLOSING_SOON_TOLERANCE, target + CLOSING_SOON_TOLERANCE
                )
        except Exception as e:
            logger.error(f"Scheduler: failed to query biddings closing in {hours_left}h: {str(e)}")
            return 0

        notified = 0
        for bidding in biddings:
            notified += await self.notifications.notify_bidding_closing_soon(bidding, hours_left)
        if biddings:
            logger.info(f"Scheduler: {len(biddings)} biddings closing in {hours_left}h, {notified} suppliers notified")
        return notified

    async def purge_read_notifications(self) -> int:
        cutoff = self.clock.now() - timedelta(days=self.retention_days)
        try:
            async with self.database.session() as db:
                deleted = await delete_read_before(db, cutoff)
                await db.commit()
        except Exception as e:
            logger.error(f"Scheduler: failed to purge notifications: {str(e)}")
            return 0
        logger.info(f"Scheduler: purged {deleted} read notifications older than {self.retention_days} days")
        return deleted

    async def _run_periodically(self, name: str, interval_seconds: int, job) -> None:
        logger.info(f"Scheduler job '{name}' started, every {interval_seconds}s")
        while True:
            try:
                await job()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Scheduler job '{name}' failed: {str(e)}")
            await asyncio.sleep(interval_seconds)

    def jobs(self) -> list[tuple[str, int, object]]:
        return [
            ("open-biddings", self.sweep_interval_seconds, self.sweep_open_transitions),
            ("close-biddings", self.sweep_interval_seconds, self.sweep_close_transitions),
            ("closing-in-24h", 3600, lambda: self.notify_closing_soon(24)),
            ("closing-in-2h", 1800, lambda: self.notify_closing_soon(2)),
            ("purge-notifications", 86400, self.purge_read_notifications),
        ]

    def start(self) -> None:
        if self._tasks:
            return
        for name, interval, job in self.jobs():
            self._tasks.append(asyncio.create_task(self._run_periodically(name, interval, job), name=name))
        logger.info(f"Scheduler started with {len(self._tasks)} jobs")

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Scheduler stopped")
