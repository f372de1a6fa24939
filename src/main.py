"""OVH Diagnostic Bot — Main Orchestrator.

Ties all components together: config, user store, OVH client factory,
messaging platforms and the notification dispatcher.

Runs on a schedule with APScheduler:
  - Status update (minute 0, every 2 hours by default)
  - Expiry update (02:00 daily by default)

Usage:
    python -m src.main
    python scripts/run.py
"""

from __future__ import annotations

import asyncio
import signal
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from src.config import AppConfig, load_config
from src.database.db import Database
from src.database import queries
from src.database.models import PLATFORM_MESSENGER, PLATFORM_SLACK, User
from src.diagnostics.pipeline import get_services_expires, get_services_status
from src.notifier.dispatcher import NotificationDispatcher
from src.ovh.client import OvhClient, OvhClientFactory
from src.platforms.generics import PresentationMessage
from src.platforms.messenger import MessengerPlatform
from src.platforms.slack import SlackPlatform
from src.utils.logger import get_logger, set_console_level

logger = get_logger(__name__)

UserJob = Callable[[OvhClient, User, str], Awaitable[list[PresentationMessage]]]


class DiagnosticBot:
    """Main application orchestrator.

    For every subscribed user, periodically runs the status or expiry
    pipeline and delivers the resulting messages on the user's platform.

    Attributes:
        config: Full application configuration.
        db: Active database instance.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        db: Optional[Database] = None,
        client_factory: Optional[OvhClientFactory] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ) -> None:
        """Initialize with optional pre-built components.

        Missing components are built by start().
        """
        self.config = config
        self.db = db
        self.client_factory = client_factory
        self.dispatcher = dispatcher
        self._messenger: Optional[MessengerPlatform] = None
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False
        self._run_lock = asyncio.Lock()

    async def start(self) -> None:
        """Full application startup sequence.

        1. Load config
        2. Initialize database
        3. Build OVH client factory and platforms
        4. Setup APScheduler with two cron jobs
        5. Enter keep-alive loop
        """
        self._running = True

        try:
            # ── 1. Config ────────────────────────────────
            if self.config is None:
                logger.info("═══ Loading configuration ═══")
                self.config = load_config()
            set_console_level(self.config.log_level)

            # ── 2. Database ──────────────────────────────
            if self.db is None:
                logger.info("═══ Initializing database ═══")
                self.db = Database(self.config.database_path)
                await self.db.initialize()
                logger.info("Database ready: %s", self.config.database_path)

            # ── 3. Components ────────────────────────────
            logger.info("═══ Initializing components ═══")
            if self.client_factory is None:
                self.client_factory = OvhClientFactory(self.config.ovh, self.db)
            if self.dispatcher is None:
                self._messenger = MessengerPlatform(self.config.messenger)
                self.dispatcher = NotificationDispatcher({
                    PLATFORM_MESSENGER: self._messenger,
                    PLATFORM_SLACK: SlackPlatform(self.db, self.config.slack),
                })

            # ── 4. Scheduler ────────────────────────────
            logger.info("═══ Setting up scheduler ═══")
            sched = self.config.scheduler
            self._scheduler = AsyncIOScheduler()
            self._scheduler.add_job(
                self.run_status_update,
                CronTrigger(hour=sched.status_hours, minute=sched.status_minute),
                id="status_update",
                max_instances=1,
                misfire_grace_time=300,
                name=f"Status update (hours {sched.status_hours})",
            )
            self._scheduler.add_job(
                self.run_expires_update,
                CronTrigger(hour=sched.expires_hour, minute=sched.expires_minute),
                id="expires_update",
                max_instances=1,
                misfire_grace_time=300,
                name=f"Expiry update ({sched.expires_hour}:{sched.expires_minute:02d})",
            )
            self._scheduler.start()
            logger.info("Scheduler started with 2 jobs")

            if sched.run_on_start:
                await self.run_status_update()

            # ── 5. Keep alive ────────────────────────────
            logger.info("═══ Entering main loop ═══")
            while self._running:
                await asyncio.sleep(1)

        except Exception:
            logger.exception("Fatal error")
            raise
        finally:
            await self.shutdown()

    # ── Scheduled jobs ───────────────────────────────────

    async def run_status_update(self) -> dict[str, Any]:
        """Send every user subscribed to updates the status of their services."""
        users = await queries.find_users(self.db, updates=True)
        return await self._run_for_users("status update", users, self._status_job)

    async def run_expires_update(self) -> dict[str, Any]:
        """Send every user subscribed to expiry alerts their expiring services."""
        users = await queries.find_users(self.db, expires=True)
        return await self._run_for_users("expiry update", users, self._expires_job)

    async def _status_job(
        self, client: OvhClient, user: User, locale: str,
    ) -> list[PresentationMessage]:
        return await get_services_status(
            client, locale, self.config.hosting_probe_timeout_seconds,
        )

    async def _expires_job(
        self, client: OvhClient, user: User, locale: str,
    ) -> list[PresentationMessage]:
        return await get_services_expires(client, locale, user.expires_period)

    async def _run_for_users(
        self,
        label: str,
        users: list[User],
        job: UserJob,
    ) -> dict[str, Any]:
        """Run a per-user job for each user, one user at a time.

        A user whose job fails is logged and skipped; the remaining users
        are still processed.

        Returns:
            Stats dict with users, delivered, errors and duration.
        """
        stats: dict[str, Any] = {"users": len(users), "delivered": 0, "errors": 0}
        start = time.monotonic()
        logger.info("═══ Starting %s for %d users ═══", label, len(users))

        async with self._run_lock:
            for user in users:
                try:
                    stats["delivered"] += await self._process_user(user, job)
                except Exception as e:
                    stats["errors"] += 1
                    logger.error(
                        "%s failed for user %s: %s",
                        label.capitalize(), user.sender_id, e,
                        exc_info=True,
                    )

        stats["duration"] = time.monotonic() - start
        logger.info(
            "═══ %s complete ═══ Users: %d | Delivered: %d | Errors: %d | Time: %.1fs",
            label.capitalize(), stats["users"], stats["delivered"],
            stats["errors"], stats["duration"],
        )
        return stats

    async def _process_user(self, user: User, job: UserJob) -> int:
        async with await self.client_factory.for_user(user.sender_id) as client:
            me = await client.get("/me")
            locale = (me or {}).get("language") or user.locale or self.config.default_locale
            messages = await job(client, user, locale)
        delivered = await self.dispatcher.deliver(user, messages)
        logger.debug(
            "User %s done: %d messages, %d delivered",
            user.sender_id, len(messages), delivered,
        )
        return delivered

    # ── Lifecycle ────────────────────────────────────────

    def stop(self) -> None:
        """Ask the main loop to exit."""
        self._running = False

    async def shutdown(self) -> None:
        """Graceful shutdown: stop scheduler, close connections."""
        logger.info("═══ Shutting down ═══")
        self._running = False

        if self._scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

        if self._messenger:
            await self._messenger.close()

        if self.db:
            await self.db.close()

        logger.info("Shutdown complete")


def main() -> None:
    """Application entry point."""
    Path("data").mkdir(exist_ok=True)
    Path("logs").mkdir(exist_ok=True)

    from dotenv import load_dotenv
    load_dotenv()

    app = DiagnosticBot()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def _signal_handler(sig, frame):
        logger.info("Signal %s received, shutting down...", sig)
        app.stop()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        loop.run_until_complete(app.start())
    except KeyboardInterrupt:
        pass
    finally:
        loop.close()


if __name__ == "__main__":
    main()
