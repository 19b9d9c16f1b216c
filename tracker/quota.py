"""Request-scoped YouTube Data API quota accounting."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from .errors import QuotaExceededError

logger = logging.getLogger(__name__)

# Unit costs published for the YouTube Data API v3.
UNIT_COSTS: Dict[str, int] = {
    "search.list": 100,
    "channels.list": 1,
    "playlistItems.list": 1,
    "videos.list": 1,
}


class QuotaTracker:
    """Counts units spent and refuses calls that would exceed ``budget``.

    A ``budget`` of None never refuses; the tracker then only records usage.
    """

    def __init__(self, budget: Optional[int] = None):
        self.budget = budget
        self.spent = 0
        self.calls: Dict[str, int] = {}

    @property
    def remaining(self) -> Optional[int]:
        if self.budget is None:
            return None
        return max(0, self.budget - self.spent)

    def spend(self, operation: str, cost: Optional[int] = None) -> None:
        units = UNIT_COSTS.get(operation, 1) if cost is None else cost
        if self.budget is not None and self.spent + units > self.budget:
            raise QuotaExceededError(
                f"{operation} needs {units} units but only {self.remaining} of {self.budget} remain"
            )
        self.spent += units
        self.calls[operation] = self.calls.get(operation, 0) + 1
        logger.debug("Quota: %s spent %s units (total %s)", operation, units, self.spent)

    def summary(self) -> Dict[str, object]:
        return {"spent": self.spent, "budget": self.budget, "calls": dict(self.calls)}


__all__ = ["QuotaTracker", "UNIT_COSTS"]
