"""Per-agent work queue that drains itself through a processing callback."""
from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Optional

from .errors import AgentError, AgentErrorType
from .models import Message

ProcessCallback = Callable[[Message], Awaitable[Any]]


class MessageQueue:
    """Priority-ordered holding area for one agent's own messages.

    Higher priority messages are inserted ahead of lower ones; equal priorities
    keep arrival order. Enqueueing while idle drains the queue: each message is
    handed to ``process_callback`` in turn until nothing is left.
    """

    def __init__(self, process_callback: ProcessCallback, max_size: int = 100) -> None:
        self._items: List[Message] = []
        self._process_callback = process_callback
        self._processing = False
        self.max_size = max_size

    @property
    def size(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return self.size

    @property
    def is_processing(self) -> bool:
        return self._processing

    def set_processing(self, processing: bool) -> None:
        self._processing = processing

    def _insert(self, message: Message) -> None:
        priority = message.effective_priority
        for index, queued in enumerate(self._items):
            if queued.effective_priority < priority:
                self._items.insert(index, message)
                return
        self._items.append(message)

    async def enqueue(self, message: Message) -> None:
        if len(self._items) >= self.max_size:
            raise AgentError(
                AgentErrorType.QUEUE_FULL,
                "Queue is full",
                {"max_size": self.max_size},
            )
        self._insert(message)
        if not self._processing:
            await self._drain()

    def dequeue(self) -> Optional[Message]:
        if not self._items:
            return None
        return self._items.pop(0)

    def peek_all(self) -> List[Message]:
        return list(self._items)

    def clear(self) -> None:
        self._items = []
        self._processing = False

    async def _drain(self) -> None:
        self._processing = True
        try:
            while self._processing and self._items:
                message = self._items.pop(0)
                await self._process_callback(message)
        finally:
            self._processing = False
