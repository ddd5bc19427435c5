"""Transport capability set consumed by the batch accumulator."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from ..core.messages import Message


@runtime_checkable
class Transport(Protocol):
    """Batching and send primitives provided by a service-specific client.

    ``try_add`` must leave the batch untouched when it returns ``False``.
    Capacity units (bytes or message count) are whatever the transport
    reports; the accumulator never interprets them.
    """

    def new_batch(self) -> Any:
        """Create an empty batch bound to the transport's limit."""
        ...

    def try_add(self, batch: Any, message: Message) -> bool:
        """Append in place, or return False if the message would exceed capacity."""
        ...

    def capacity_of(self, batch: Any) -> int:
        """Current size of a batch."""
        ...

    def send(self, batch: Any) -> None:
        """Ship a completed batch. Failures propagate to the caller."""
        ...
