import logging
from enum import Enum
from typing import Dict, List, Optional, Set

logger = logging.getLogger(__name__)


class DealPhase(str, Enum):
    ELIGIBLE = "eligible"  # tracked, start not confirmed yet
    ACTIVE = "active"


class DealTracker:
    """
    In-memory registry of the deals under price recovery.

    Holds at most one entry per deal id. Completed deals leave the registry and
    are remembered as finished for the life of the process, so a deal whose
    fields still look eligible is not started a second time.
    """

    def __init__(self):
        self._phases: Dict[str, DealPhase] = {}
        self._finished: Set[str] = set()

    def __len__(self) -> int:
        return len(self._phases)

    def is_tracked(self, deal_id: str) -> bool:
        return deal_id in self._phases

    def is_finished(self, deal_id: str) -> bool:
        return deal_id in self._finished

    def phase(self, deal_id: str) -> Optional[DealPhase]:
        return self._phases.get(deal_id)

    def start_tracking(self, deal_id: str) -> None:
        if deal_id in self._phases:
            raise ValueError(f"Deal {deal_id} is already tracked")
        self._phases[deal_id] = DealPhase.ELIGIBLE
        logger.info(f"Deal {deal_id} added to tracked deals.")

    def activate(self, deal_id: str) -> None:
        if deal_id not in self._phases:
            raise KeyError(deal_id)
        self._phases[deal_id] = DealPhase.ACTIVE

    def stop_tracking(self, deal_id: str) -> None:
        self._phases.pop(deal_id, None)
        self._finished.add(deal_id)

    def active_ids(self) -> List[str]:
        return [deal_id for deal_id, phase in self._phases.items() if phase is DealPhase.ACTIVE]

    @property
    def finished_count(self) -> int:
        return len(self._finished)
