import asyncio
import logging
from typing import Awaitable, Callable, Optional

from core.tracker import DealTracker

logger = logging.getLogger(__name__)


class PollLoop:
    """
    Runs one cycle, waits a fixed interval, repeats.

    `stop()` ends the loop between cycles; a running cycle always finishes.
    """

    def __init__(self, cycle: Callable[[], Awaitable], interval: float,
                 tracker: Optional[DealTracker] = None, report_frequency: int = 100):
        self.cycle = cycle
        self.interval = interval
        self.tracker = tracker
        self.report_frequency = report_frequency
        self.cycle_count = 0
        self._stop_event = asyncio.Event()

    def stop(self) -> None:
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    async def run(self, max_cycles: Optional[int] = None) -> int:
        """Returns the number of cycles run."""
        while not self._stop_event.is_set():
            if max_cycles is not None and self.cycle_count >= max_cycles:
                break

            self.cycle_count += 1
            try:
                await self.cycle()
            except Exception as e:
                logger.error(f"❌ Error in polling cycle #{self.cycle_count}: {e}", exc_info=True)

            if self.cycle_count % self.report_frequency == 0:
                self._report()

            if max_cycles is not None and self.cycle_count >= max_cycles:
                break
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

        logger.info(f"💤 Polling stopped after {self.cycle_count} cycles.")
        return self.cycle_count

    def _report(self) -> None:
        if self.tracker is None:
            logger.info(f"📊 Cycle #{self.cycle_count}")
            return
        logger.info(
            f"📊 Cycle #{self.cycle_count}: {len(self.tracker)} tracked deals "
            f"({len(self.tracker.active_ids())} active), {self.tracker.finished_count} finished"
        )
