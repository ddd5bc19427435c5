"""In-memory transport for offline demos and tests.

Capacity is expressed either as a message count or as encoded body bytes,
so the same accumulator code can be exercised against both kinds of limit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger

from ..core.messages import Message


class CapacityUnit(str, Enum):
    """Units a batch capacity is measured in."""

    COUNT = "count"
    BYTES = "bytes"


@dataclass
class MemoryBatch:
    """A batch held in memory."""

    capacity: int
    unit: CapacityUnit = CapacityUnit.COUNT
    messages: List[Message] = field(default_factory=list)
    size: int = 0

    def __len__(self) -> int:
        return len(self.messages)

    @property
    def count(self) -> int:
        return len(self.messages)


class InMemoryTransport:
    """Transport that records sent batches instead of shipping them."""

    def __init__(
        self,
        capacity: int,
        unit: CapacityUnit = CapacityUnit.COUNT,
        size_of: Optional[Callable[[Message], int]] = None,
        fail_on_send: Optional[BaseException] = None,
    ):
        """Initialize the in-memory transport.

        Args:
            capacity: Maximum batch size, in ``unit``
            unit: Whether capacity counts messages or bytes
            size_of: Override for measuring a message (defaults to encoded body length)
            fail_on_send: Exception to raise from ``send`` to simulate an outage
        """
        if capacity <= 0:
            raise ValueError("Batch capacity must be positive")

        self.capacity = capacity
        self.unit = unit
        self.fail_on_send = fail_on_send
        self._size_of = size_of or (lambda message: message.size)

        self.sent_batches: List[Tuple[Message, ...]] = []
        self.single_messages: List[Message] = []
        self.scheduled: List[Tuple[datetime, Message]] = []
        self._batches_created = 0

    def measure(self, message: Message) -> int:
        """Size of a message in this transport's capacity unit."""
        if self.unit == CapacityUnit.COUNT:
            return 1
        return self._size_of(message)

    def new_batch(self) -> MemoryBatch:
        self._batches_created += 1
        return MemoryBatch(capacity=self.capacity, unit=self.unit)

    def try_add(self, batch: MemoryBatch, message: Message) -> bool:
        message_size = self.measure(message)
        if batch.size + message_size > batch.capacity:
            return False

        batch.messages.append(message)
        batch.size += message_size
        return True

    def capacity_of(self, batch: MemoryBatch) -> int:
        return batch.size

    def send(self, batch: MemoryBatch) -> None:
        if self.fail_on_send is not None:
            raise self.fail_on_send

        self.sent_batches.append(tuple(batch.messages))
        logger.debug(f"Recorded batch of {batch.count} messages ({batch.size} {self.unit.value})")

    def send_message(self, message: Message) -> None:
        """Record one message sent outside of any batch."""
        if self.fail_on_send is not None:
            raise self.fail_on_send
        self.single_messages.append(message)

    def schedule_message(self, message: Message, scheduled_time: datetime) -> List[int]:
        """Record a scheduled message; sequence numbers are positions in ``scheduled``."""
        self.scheduled.append((scheduled_time, message))
        return [len(self.scheduled)]

    @property
    def sent_messages(self) -> List[Message]:
        """All sent messages, flattened in send order."""
        return [message for batch in self.sent_batches for message in batch]

    def get_stats(self) -> Dict[str, Any]:
        return {
            "capacity": self.capacity,
            "unit": self.unit.value,
            "batches_created": self._batches_created,
            "batches_sent": len(self.sent_batches),
            "messages_sent": len(self.sent_messages),
            "single_messages": len(self.single_messages),
            "scheduled_messages": len(self.scheduled),
        }

    def close(self) -> None:
        pass

    def __enter__(self) -> InMemoryTransport:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
