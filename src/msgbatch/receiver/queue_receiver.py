"""Queue and subscription receivers for reading messages back from Azure Service Bus.

Covers the receive side of the samples: peeking without locking,
receive-and-settle with a handler, and inspecting the dead-letter queue.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from azure.servicebus import ServiceBusClient, ServiceBusReceivedMessage, ServiceBusReceiver, ServiceBusSubQueue
from loguru import logger

from ..config.settings import DEFAULT_QUEUE_NAME, DEFAULT_SUBSCRIPTION_NAME, DEFAULT_TOPIC_NAME, get_current_config

MessageSummary = Dict[str, Any]


@dataclass
class ReceiveResult:
    """Outcome of one receive-and-process pass."""

    received: int = 0
    completed: int = 0
    abandoned: int = 0
    errors: List[str] = field(default_factory=list)


def _decode(value: Any) -> Any:
    return value.decode("utf-8", errors="replace") if isinstance(value, bytes) else value


def decode_body(message: ServiceBusReceivedMessage) -> Any:
    """Decode a received body as JSON when possible, otherwise as text."""
    body = message.body
    if isinstance(body, (bytes, str)):
        raw = body
    else:
        raw = b"".join(section if isinstance(section, bytes) else str(section).encode("utf-8") for section in body)

    text = _decode(raw)
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return text


def summarize(message: ServiceBusReceivedMessage) -> MessageSummary:
    """Flatten a received message into a plain dict."""
    properties = message.application_properties or {}
    return {
        "message_id": message.message_id,
        "subject": message.subject,
        "application_properties": {_decode(key): _decode(value) for key, value in properties.items()},
        "body": decode_body(message),
        "dead_letter_reason": message.dead_letter_reason,
    }


class QueueReceiver:
    """Receives and settles messages from a Service Bus queue."""

    def __init__(self, client: ServiceBusClient, queue_name: str):
        """Initialize the queue receiver.

        Args:
            client: Service Bus client (owned by the caller)
            queue_name: Queue to receive from
        """
        self.client = client
        self.queue_name = queue_name
        self.entity_name = queue_name
        self._receiver = self._open_receiver()

    def _open_receiver(self, sub_queue: Optional[ServiceBusSubQueue] = None) -> ServiceBusReceiver:
        if sub_queue is None:
            return self.client.get_queue_receiver(queue_name=self.queue_name)
        return self.client.get_queue_receiver(queue_name=self.queue_name, sub_queue=sub_queue)

    def peek(self, max_count: int = 5) -> List[MessageSummary]:
        """Look at messages without locking or removing them."""
        messages = self._receiver.peek_messages(max_message_count=max_count)
        logger.info(f"Peeked {len(messages)} messages on {self.entity_name}")
        return [summarize(message) for message in messages]

    def process(
        self,
        handler: Callable[[MessageSummary], None],
        max_messages: int = 10,
        max_wait_time: float = 5.0,
    ) -> ReceiveResult:
        """Receive a batch of messages and settle each one.

        Messages whose handler returns are completed; messages whose handler
        raises are abandoned so the service can redeliver them (and
        dead-letter them after the maximum delivery count).
        """
        messages = self._receiver.receive_messages(max_message_count=max_messages, max_wait_time=max_wait_time)
        result = ReceiveResult(received=len(messages))
        logger.info(f"Received {len(messages)} messages from {self.entity_name}")

        for message in messages:
            summary = summarize(message)
            try:
                handler(summary)
            except Exception as e:
                logger.warning(f"Processing failed for {summary['message_id']}: {e}")
                self._receiver.abandon_message(message)
                result.abandoned += 1
                result.errors.append(f"{summary['message_id']}: {e}")
                continue

            self._receiver.complete_message(message)
            result.completed += 1
            logger.debug(f"Completed {summary['message_id']}")

        return result

    def peek_dead_letters(self, max_count: int = 5) -> List[MessageSummary]:
        """Peek at the entity's dead-letter sub-queue."""
        with self._open_receiver(ServiceBusSubQueue.DEAD_LETTER) as dlq_receiver:
            messages = dlq_receiver.peek_messages(max_message_count=max_count)

        if messages:
            logger.warning(f"Found {len(messages)} dead-letter messages on {self.entity_name}")
        return [summarize(message) for message in messages]

    def close(self) -> None:
        self._receiver.close()

    def __enter__(self) -> QueueReceiver:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def create_queue_receiver(client: ServiceBusClient, queue_name: Optional[str] = None) -> QueueReceiver:
    """Create a receiver for the given queue, or the configured default."""
    if queue_name is None:
        config = get_current_config()
        queue_name = config.service_bus.queue_name if config else DEFAULT_QUEUE_NAME

    return QueueReceiver(client, queue_name)


class SubscriptionReceiver(QueueReceiver):
    """Receives and settles messages from one subscription of a topic."""

    def __init__(self, client: ServiceBusClient, topic_name: str, subscription_name: str):
        """Initialize the subscription receiver.

        Args:
            client: Service Bus client (owned by the caller)
            topic_name: Topic the subscription belongs to
            subscription_name: Subscription to receive from
        """
        self.client = client
        self.topic_name = topic_name
        self.subscription_name = subscription_name
        self.entity_name = f"{topic_name}/{subscription_name}"
        self._receiver = self._open_receiver()

    def _open_receiver(self, sub_queue: Optional[ServiceBusSubQueue] = None) -> ServiceBusReceiver:
        if sub_queue is None:
            return self.client.get_subscription_receiver(topic_name=self.topic_name, subscription_name=self.subscription_name)
        return self.client.get_subscription_receiver(
            topic_name=self.topic_name,
            subscription_name=self.subscription_name,
            sub_queue=sub_queue,
        )


def create_subscription_receiver(
    client: ServiceBusClient,
    topic_name: Optional[str] = None,
    subscription_name: Optional[str] = None,
) -> SubscriptionReceiver:
    """Create a receiver for the given subscription, or the configured default."""
    config = get_current_config()
    if topic_name is None:
        topic_name = config.service_bus.topic_name if config else DEFAULT_TOPIC_NAME
    if subscription_name is None:
        subscription_name = config.service_bus.subscription_name if config else DEFAULT_SUBSCRIPTION_NAME

    return SubscriptionReceiver(client, topic_name, subscription_name)
