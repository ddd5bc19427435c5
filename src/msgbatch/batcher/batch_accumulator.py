"""Batch accumulator for packing messages into size-bounded batches.

This module buffers outbound messages into the transport's own batch
objects and hands each full (or final) batch to the transport, preserving
submission order across batch boundaries. Size checks are delegated to the
transport: an append is tried first and a new batch is opened only when the
transport rejects it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from ..core.errors import MessageTooLarge, TransportSendFailure
from ..core.messages import AppendResult, Message
from ..transport.base import Transport


@dataclass
class OpenBatch:
    """The batch currently being filled."""

    batch: Any
    messages: List[Message] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.messages)

    def is_empty(self) -> bool:
        return not self.messages


@dataclass
class BatchSendResult:
    """Result of sending a sequence of messages through the accumulator."""

    messages_sent: int = 0
    batches_sent: int = 0
    skipped: List[Message] = field(default_factory=list)
    elapsed_ms: float = 0.0

    @property
    def success(self) -> bool:
        return not self.skipped


class BatchAccumulator:
    """Accumulates messages into transport batches and flushes them in order.

    Driven by a single sequential producer; not safe for concurrent appends.
    """

    def __init__(self, transport: Transport):
        """Initialize the accumulator.

        Args:
            transport: Provides ``new_batch``, ``try_add``, ``capacity_of`` and ``send``
        """
        self.transport = transport
        self._open: Optional[OpenBatch] = None

        # Statistics
        self._total_messages_appended = 0
        self._total_batches_created = 0
        self._total_batches_sent = 0
        self._total_messages_sent = 0
        self._total_rejections = 0
        self._total_oversized = 0

    def append(self, message: Message) -> AppendResult:
        """Try to add a message to the open batch.

        Returns:
            ``REJECTED`` if the transport refused the message; the open batch
            is left unchanged and the caller must flush before retrying.
        """
        open_batch = self._ensure_open_batch()

        if not self.transport.try_add(open_batch.batch, message):
            self._total_rejections += 1
            logger.debug(f"Batch full at {open_batch.count} messages, rejected {message.message_id or '<no id>'}")
            return AppendResult.REJECTED

        open_batch.messages.append(message)
        self._total_messages_appended += 1
        return AppendResult.ACCEPTED

    def add(self, message: Message) -> None:
        """Append a message, flushing and opening a new batch on rejection.

        Raises:
            MessageTooLarge: The message does not fit even in an empty batch
            TransportSendFailure: Flushing the full batch failed
        """
        if self.append(message) == AppendResult.ACCEPTED:
            return

        if self._open is not None and self._open.is_empty():
            # Already rejected by an empty batch, a fresh one will not do better
            self._reject_oversized(message)

        self.flush_if_non_empty()

        if self.append(message) == AppendResult.REJECTED:
            self._reject_oversized(message)

    def flush_if_non_empty(self) -> None:
        """Send the open batch if it holds any messages and start a new one.

        On failure the batch stays open so the flush can be retried.

        Raises:
            TransportSendFailure: The transport's send raised
        """
        open_batch = self._open
        if open_batch is None or open_batch.is_empty():
            return

        try:
            self.transport.send(open_batch.batch)
        except Exception as e:
            logger.error(f"Failed to send batch of {open_batch.count} messages: {e}")
            raise TransportSendFailure(open_batch.batch, open_batch.count) from e

        self._total_batches_sent += 1
        self._total_messages_sent += open_batch.count
        logger.info(f"Flushed batch of {open_batch.count} messages")

        self._open = None

    def finish(self) -> None:
        """Flush whatever is pending once the message source is exhausted."""
        self.flush_if_non_empty()

    def send_all(self, messages: Iterable[Message], skip_oversized: bool = False) -> BatchSendResult:
        """Batch and send every message, then finish.

        Args:
            messages: Messages in submission order
            skip_oversized: Skip messages that can never fit instead of raising

        Returns:
            BatchSendResult with statistics
        """
        start_time = time.time()
        batches_before = self._total_batches_sent
        messages_before = self._total_messages_sent
        skipped: List[Message] = []

        for message in messages:
            try:
                self.add(message)
            except MessageTooLarge as e:
                if not skip_oversized:
                    raise
                logger.warning(f"Skipping message: {e}")
                skipped.append(message)

        self.finish()

        result = BatchSendResult(
            messages_sent=self._total_messages_sent - messages_before,
            batches_sent=self._total_batches_sent - batches_before,
            skipped=skipped,
            elapsed_ms=(time.time() - start_time) * 1000,
        )

        logger.info(f"Batch send complete: {result.messages_sent} messages in {result.batches_sent} batches, {result.elapsed_ms:.2f}ms")
        if skipped:
            logger.warning(f"Skipped {len(skipped)} oversized messages")

        return result

    @property
    def pending_count(self) -> int:
        """Number of messages waiting in the open batch."""
        return self._open.count if self._open else 0

    def get_stats(self) -> Dict[str, Any]:
        """Get accumulator statistics."""
        return {
            "pending_messages": self.pending_count,
            "pending_size": self.transport.capacity_of(self._open.batch) if self._open else 0,
            "total_messages_appended": self._total_messages_appended,
            "total_messages_sent": self._total_messages_sent,
            "total_batches_created": self._total_batches_created,
            "total_batches_sent": self._total_batches_sent,
            "total_rejections": self._total_rejections,
            "total_oversized": self._total_oversized,
        }

    def _ensure_open_batch(self) -> OpenBatch:
        if self._open is None:
            self._open = OpenBatch(batch=self.transport.new_batch())
            self._total_batches_created += 1
            logger.debug("Created new batch")
        return self._open

    def _reject_oversized(self, message: Message) -> None:
        self._total_oversized += 1
        capacity = getattr(self._open.batch, "max_size_in_bytes", None) or getattr(self._open.batch, "capacity", None)
        raise MessageTooLarge(message, size=message.size, capacity=capacity)
