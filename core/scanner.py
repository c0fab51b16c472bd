import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from core.exceptions import DataShapeError, GatewayError
from core.orchestrator import PriceAdjustmentOrchestrator
from core.tracker import DealPhase, DealTracker
from models.deal import Deal, DealFieldKeys, DealRecord

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CycleReport:
    fetched: int = 0
    started: int = 0
    adjusted: int = 0
    completed: int = 0
    skipped: int = 0
    aborted: bool = False


class DealScanner:
    """
    One polling cycle over every deal.

    Eligible deals are started once, active deals get one recovery pass, and
    deals whose product is fully back at compare-at price are marked finished.
    """

    def __init__(self, gateway, tracker: DealTracker, orchestrator: PriceAdjustmentOrchestrator,
                 field_keys: Optional[DealFieldKeys] = None, persist_start_marker: bool = False,
                 clock: Callable[[], datetime] = utc_now):
        self.gateway = gateway
        self.tracker = tracker
        self.orchestrator = orchestrator
        self.field_keys = field_keys or DealFieldKeys()
        self.persist_start_marker = persist_start_marker
        self.clock = clock

    async def run_cycle(self) -> CycleReport:
        report = CycleReport()
        try:
            records = await self.gateway.fetch_deals()
        except GatewayError as e:
            logger.error(f"❌ Error fetching deals: {e}")
            report.aborted = True
            return report

        report.fetched = len(records)
        logger.info(f"Fetched {len(records)} deals.")

        now = self.clock()
        for record in records:
            await self._process(record, now, report)
        return report

    async def _process(self, record: DealRecord, now: datetime, report: CycleReport) -> None:
        try:
            deal = Deal.from_record(record, self.field_keys)
        except DataShapeError as e:
            logger.warning(f"⚠️ Skipping deal {record.id}: {e}")
            report.skipped += 1
            return

        if self.tracker.is_finished(deal.id):
            return

        if not self.tracker.is_tracked(deal.id):
            if not deal.is_eligible(now):
                return
            self.tracker.start_tracking(deal.id)

        if self.tracker.phase(deal.id) is DealPhase.ELIGIBLE:
            if not await self._confirm_start(deal):
                return
            self.tracker.activate(deal.id)
            report.started += 1
            logger.info(f"🚀 Deal {deal.id} started.")

        if not deal.product_id:
            logger.warning(f"⚠️ Deal {deal.id} lost its product reference, waiting")
            return

        # Tracked deals keep recovering even if the pricing flag is switched off later
        is_complete = await self.orchestrator.adjust_product_prices(deal.product_id)
        report.adjusted += 1
        if is_complete:
            self.tracker.stop_tracking(deal.id)
            report.completed += 1
            logger.info(f"✅ Deal {deal.id} completed.")

    async def _confirm_start(self, deal: Deal) -> bool:
        """Writes the remote "started" marker once; a deal that already carries it resumes as is."""
        if not self.persist_start_marker or deal.started:
            return True
        try:
            await self.gateway.update_deal_metadata(deal.id, {self.field_keys.started: "true"})
        except GatewayError as e:
            logger.error(f"❌ Error marking deal {deal.id} as started: {e}")
            return False
        return True
