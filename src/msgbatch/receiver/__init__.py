"""Receive-side module for reading messages back from queues and subscriptions."""

from .queue_receiver import (
    QueueReceiver,
    ReceiveResult,
    SubscriptionReceiver,
    create_queue_receiver,
    create_subscription_receiver,
    decode_body,
    summarize,
)

__all__ = [
    "QueueReceiver",
    "SubscriptionReceiver",
    "ReceiveResult",
    "create_queue_receiver",
    "create_subscription_receiver",
    "decode_body",
    "summarize",
]
