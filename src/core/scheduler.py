"""Scheduler for running periodic price refresh cycles."""

from __future__ import annotations

import logging
import signal
import sys
import threading
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.config import get_settings
from src.data.market.board import PriceBoard
from .refresh import RefreshResult, run_refresh_cycle

logger = logging.getLogger(__name__)
settings = get_settings()


class PriceRefreshScheduler:
    """Scheduler for periodic price refreshes.

    A slow cycle may still be running when the next one starts; both
    publish to the same board and the last to finish wins.
    """

    def __init__(
        self,
        interval_seconds: Optional[int] = None,
        board: Optional[PriceBoard] = None,
        on_refresh: Optional[Callable[[RefreshResult], None]] = None,
    ):
        """Initialize the scheduler.

        Args:
            interval_seconds: Seconds between cycles (defaults to settings)
            board: Board receiving each cycle's price map
            on_refresh: Called with every successful cycle's result
        """
        self.interval = interval_seconds or settings.refresh_interval_seconds
        self.board = board or PriceBoard()
        self.on_refresh = on_refresh
        self.scheduler = BlockingScheduler()
        self._cycle_count = 0
        self._count_lock = threading.Lock()
        self._shutdown_requested = False

    def _run_cycle(self) -> None:
        """Execute a single refresh cycle."""
        # Cycles can overlap (max_instances=2); each gets its own number
        with self._count_lock:
            self._cycle_count += 1
            cycle = self._cycle_count
        timestamp = datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S UTC")

        logger.info(f"[Cycle {cycle}] Starting at {timestamp}")

        try:
            result = run_refresh_cycle(board=self.board)
        except Exception as e:
            # The board keeps showing the previous prices
            logger.error(f"[Cycle {cycle}] Error: {e}")
            return

        if result.prices.unknown:
            logger.info(f"[Cycle {cycle}] Unpriced: {', '.join(result.prices.unknown)}")
        if self.on_refresh:
            self.on_refresh(result)

    def _handle_signal(self, signum, frame) -> None:
        """Handle shutdown signals gracefully."""
        if self._shutdown_requested:
            # Force exit on second signal
            logger.warning("Received second shutdown signal, forcing exit...")
            sys.exit(1)

        logger.info("Received shutdown signal, stopping scheduler...")
        self._shutdown_requested = True
        self.stop()

    def start(self) -> None:
        """Start the scheduler (blocking)."""
        signal.signal(signal.SIGINT, self._handle_signal)
        signal.signal(signal.SIGTERM, self._handle_signal)

        self.scheduler.add_job(
            self._run_cycle,
            trigger=IntervalTrigger(seconds=self.interval),
            id="price_refresh",
            name="Price Refresh",
            replace_existing=True,
            max_instances=2,
        )

        logger.info(f"Starting price refresh every {self.interval}s")
        logger.info("Press Ctrl+C to stop")

        # Run first cycle immediately
        self._run_cycle()

        try:
            self.scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            pass  # Expected on shutdown
        finally:
            logger.info("Scheduler stopped")

    def stop(self) -> None:
        """Stop the scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler shutdown complete")
