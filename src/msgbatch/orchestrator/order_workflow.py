"""Order send workflow for the Service Bus sample.

This module drives the sender side of the sample end to end:
single message → batched orders → scheduled message

It works against any transport that offers ``send_message`` and
``schedule_message`` in addition to the batching primitives, so the same
flow runs on Service Bus and on the in-memory transport.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from ..batcher import BatchAccumulator, BatchSendResult
from ..config.console import log, log_section, log_success
from ..core.messages import OrderItem, OrderMessage
from ..transport.memory_transport import CapacityUnit, InMemoryTransport

DEFAULT_SCHEDULE_DELAY_SECONDS = 30


def sample_orders(count: int, start: int = 2) -> List[OrderMessage]:
    """Generate ``count`` deterministic sample orders, numbered from ``start``."""
    orders = []
    for offset in range(count):
        number = start + offset
        orders.append(
            OrderMessage(
                order_id=f"ORD-{number:03d}",
                customer_id=f"CUST-{(number * 111) % 1000:03d}",
                items=[OrderItem(product_id=f"PROD-{chr(ord('A') + number % 6)}", quantity=1 + number % 5)],
                total_amount=round(49.99 + (number * 137.5) % 900, 2),
            )
        )
    return orders


@dataclass
class WorkflowSummary:
    """What one workflow run sent."""

    single_sent: int = 0
    batch_result: Optional[BatchSendResult] = None
    scheduled_sequence_numbers: List[int] = field(default_factory=list)

    @property
    def total_messages(self) -> int:
        batched = self.batch_result.messages_sent if self.batch_result else 0
        return self.single_sent + batched + len(self.scheduled_sequence_numbers)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "single_sent": self.single_sent,
            "batched_sent": self.batch_result.messages_sent if self.batch_result else 0,
            "batches": self.batch_result.batches_sent if self.batch_result else 0,
            "skipped": [m.message_id for m in self.batch_result.skipped] if self.batch_result else [],
            "scheduled": self.scheduled_sequence_numbers,
            "total": self.total_messages,
        }


class OrderSendWorkflow:
    """Sends orders through a transport the way the sample does."""

    def __init__(self, transport: Any, skip_oversized: bool = False):
        """Initialize the workflow.

        Args:
            transport: Batching transport that also supports single and scheduled sends
            skip_oversized: Skip orders too large for any batch instead of aborting
        """
        self.transport = transport
        self.skip_oversized = skip_oversized
        self.accumulator = BatchAccumulator(transport)

    def send_single(self, order: OrderMessage) -> None:
        log_section("Sending Single Message")
        self.transport.send_message(order.to_message(region="US-WEST"))
        log(f"Sent order: {order.order_id}")

    def send_orders(self, orders: Sequence[OrderMessage]) -> BatchSendResult:
        log_section("Sending Batch Messages")
        result = self.accumulator.send_all((order.to_message() for order in orders), skip_oversized=self.skip_oversized)
        log(f"Sent {result.messages_sent} orders in {result.batches_sent} batches")
        return result

    def schedule(self, order: OrderMessage, delay_seconds: int = DEFAULT_SCHEDULE_DELAY_SECONDS) -> List[int]:
        log_section("Sending Scheduled Message")
        scheduled_time = datetime.now(timezone.utc) + timedelta(seconds=delay_seconds)
        sequence_numbers = self.transport.schedule_message(order.to_message(subject="ScheduledOrder"), scheduled_time)
        log(f"Scheduled order {order.order_id} for {scheduled_time.isoformat()}")
        log(f"Sequence number: {sequence_numbers[0] if sequence_numbers else 'n/a'}")
        return sequence_numbers

    def run(self, orders: Sequence[OrderMessage], schedule_delay_seconds: int = DEFAULT_SCHEDULE_DELAY_SECONDS) -> WorkflowSummary:
        """Run single, batched and scheduled sends in order."""
        summary = WorkflowSummary()

        first = OrderMessage(
            order_id="ORD-001",
            customer_id="CUST-123",
            items=[OrderItem(product_id="PROD-A", quantity=2), OrderItem(product_id="PROD-B", quantity=1)],
            total_amount=99.99,
        )
        self.send_single(first)
        summary.single_sent = 1

        summary.batch_result = self.send_orders(orders)

        future_order = OrderMessage(
            order_id="ORD-SCHEDULED",
            customer_id="CUST-999",
            items=[OrderItem(product_id="PROD-F", quantity=1)],
            total_amount=999.99,
        )
        summary.scheduled_sequence_numbers = self.schedule(future_order, schedule_delay_seconds)

        log_section("Send Complete")
        log("Messages sent:", summary.to_dict())
        logger.info(f"Workflow sent {summary.total_messages} messages")

        return summary


def run_demo(count: int = 10, capacity: int = 4) -> WorkflowSummary:
    """Run the order workflow against an in-memory transport.

    Args:
        count: Number of batched orders to generate
        capacity: Messages per in-memory batch
    """
    log_section("msgbatch - In-Memory Order Demo")

    with InMemoryTransport(capacity=capacity, unit=CapacityUnit.COUNT) as transport:
        summary = OrderSendWorkflow(transport).run(sample_orders(count))

        for index, batch in enumerate(transport.sent_batches, 1):
            log(f"Batch {index}: {', '.join(message.message_id for message in batch)}")

    log_success(f"Demo complete: {summary.total_messages} messages")
    return summary
