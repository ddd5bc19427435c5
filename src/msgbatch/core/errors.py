"""Exception types raised by msgbatch components."""

from __future__ import annotations

from typing import Any, Optional


class MsgBatchError(Exception):
    """Base class for all msgbatch errors."""


class MessageTooLarge(MsgBatchError):
    """A single message does not fit into an empty batch.

    The message can never be sent through the current transport. The
    accumulator that raised this stays usable for later messages.
    """

    def __init__(self, message: Any, size: Optional[int] = None, capacity: Optional[int] = None):
        self.message = message
        self.size = size
        self.capacity = capacity

        message_id = getattr(message, "message_id", None) or "<no id>"
        detail = f"Message {message_id} is too large for an empty batch"
        if size is not None:
            detail += f" (size: {size}"
            detail += f", capacity: {capacity})" if capacity is not None else ")"
        super().__init__(detail)


class TransportSendFailure(MsgBatchError):
    """The transport failed to ship a batch; the original error is the ``__cause__``."""

    def __init__(self, batch: Any, message_count: int = 0):
        self.batch = batch
        self.message_count = message_count
        super().__init__(f"Transport failed to send batch of {message_count} messages")


class ConfigurationError(MsgBatchError):
    """Required configuration is missing or invalid."""
