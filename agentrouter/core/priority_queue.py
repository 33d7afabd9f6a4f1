"""Three-tier queue holding the orchestrator's undispatched messages."""
from __future__ import annotations

import bisect
import time
from typing import Callable, Dict, List, Optional

from .models import Message, QueueItem, QueueStats

HIGH = "high"
NORMAL = "normal"
LOW = "low"
TIERS = (HIGH, NORMAL, LOW)


def tier_for(message: Message) -> str:
    priority = message.priority
    if priority is not None and priority > 5:
        return HIGH
    if priority is not None and priority > 2:
        return NORMAL
    return LOW


class PriorityMessageQueue:
    """FIFO within a tier, strict precedence across tiers (high, normal, low)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._tiers: Dict[str, List[QueueItem]] = {tier: [] for tier in TIERS}
        self.is_processing = False

    def enqueue(self, message: Message) -> QueueItem:
        item = QueueItem(message=message, enqueued_at=self._clock())
        bisect.insort_right(self._tiers[tier_for(message)], item, key=lambda queued: queued.enqueued_at)
        return item

    def dequeue_item(self) -> Optional[QueueItem]:
        for tier in TIERS:
            if self._tiers[tier]:
                return self._tiers[tier].pop(0)
        return None

    def dequeue(self) -> Optional[Message]:
        item = self.dequeue_item()
        return item.message if item else None

    def clear(self) -> None:
        for items in self._tiers.values():
            items.clear()

    @property
    def size(self) -> int:
        return sum(len(items) for items in self._tiers.values())

    def __len__(self) -> int:
        return self.size

    def get_stats(self) -> QueueStats:
        return QueueStats(
            total=self.size,
            high=len(self._tiers[HIGH]),
            normal=len(self._tiers[NORMAL]),
            low=len(self._tiers[LOW]),
            is_processing=self.is_processing,
        )
