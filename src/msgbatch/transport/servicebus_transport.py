"""Azure Service Bus transport.

Wraps a ``ServiceBusSender`` so the batch accumulator can drive the SDK's
own size-checked ``ServiceBusMessageBatch``. Capacity is reported in bytes,
as computed by the SDK.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, List, Optional

from azure.identity import DefaultAzureCredential
from azure.servicebus import ServiceBusClient, ServiceBusMessage, ServiceBusMessageBatch, ServiceBusSender
from azure.servicebus.exceptions import MessageSizeExceededError
from loguru import logger

from ..core.errors import ConfigurationError
from ..core.messages import Message

if TYPE_CHECKING:
    from ..config.settings import MsgBatchConfig


def to_service_bus_message(message: Message) -> ServiceBusMessage:
    """Convert a ``Message`` into the SDK's message type."""
    return ServiceBusMessage(
        body=message.body_bytes,
        subject=message.subject,
        application_properties=dict(message.application_properties) or None,
        message_id=message.message_id,
        content_type=message.content_type,
        scheduled_enqueue_time_utc=message.scheduled_enqueue_time,
    )


def create_service_bus_client(config: MsgBatchConfig) -> ServiceBusClient:
    """Create a client from a connection string, or from a namespace with Entra ID."""
    sb_config = config.service_bus

    if sb_config.connection_string:
        logger.debug("Creating Service Bus client from connection string")
        return ServiceBusClient.from_connection_string(sb_config.connection_string)

    if sb_config.fully_qualified_namespace:
        logger.debug(f"Creating Service Bus client for {sb_config.fully_qualified_namespace} with DefaultAzureCredential")
        return ServiceBusClient(
            fully_qualified_namespace=sb_config.fully_qualified_namespace,
            credential=DefaultAzureCredential(),
        )

    raise ConfigurationError("Either SERVICE_BUS_CONNECTION_STRING or SERVICE_BUS_FQDN must be set")


class ServiceBusTransport:
    """Transport backed by an Azure Service Bus queue or topic sender."""

    def __init__(
        self,
        sender: ServiceBusSender,
        max_batch_bytes: Optional[int] = None,
        client: Optional[ServiceBusClient] = None,
    ):
        """Initialize the Service Bus transport.

        Args:
            sender: Queue or topic sender to ship batches through
            max_batch_bytes: Batch size limit (defaults to the link's maximum)
            client: Owning client, closed together with the sender
        """
        self.sender = sender
        self.max_batch_bytes = max_batch_bytes
        self.client = client

    @classmethod
    def from_config(cls, config: MsgBatchConfig, topic: bool = False) -> ServiceBusTransport:
        """Build a transport for the configured queue (or topic)."""
        client = create_service_bus_client(config)

        if topic:
            sender = client.get_topic_sender(topic_name=config.service_bus.topic_name)
            logger.info(f"Created Service Bus sender for topic: {config.service_bus.topic_name}")
        else:
            sender = client.get_queue_sender(queue_name=config.service_bus.queue_name)
            logger.info(f"Created Service Bus sender for queue: {config.service_bus.queue_name}")

        return cls(sender, max_batch_bytes=config.batching.max_batch_bytes, client=client)

    def new_batch(self) -> ServiceBusMessageBatch:
        return self.sender.create_message_batch(max_size_in_bytes=self.max_batch_bytes)

    def try_add(self, batch: ServiceBusMessageBatch, message: Message) -> bool:
        try:
            batch.add_message(to_service_bus_message(message))
        except MessageSizeExceededError:
            return False
        return True

    def capacity_of(self, batch: ServiceBusMessageBatch) -> int:
        return batch.size_in_bytes

    def send(self, batch: ServiceBusMessageBatch) -> None:
        self.sender.send_messages(batch)
        logger.debug(f"Sent Service Bus batch of {len(batch)} messages ({batch.size_in_bytes} bytes)")

    def send_message(self, message: Message) -> None:
        """Send one message outside of any batch."""
        self.sender.send_messages(to_service_bus_message(message))
        logger.info(f"Sent message {message.message_id or '<no id>'} ({message.subject or 'no subject'})")

    def schedule_message(self, message: Message, scheduled_time: datetime) -> List[int]:
        """Schedule a message for later delivery.

        Returns:
            Sequence numbers assigned by the service
        """
        if scheduled_time.tzinfo is None:
            scheduled_time = scheduled_time.replace(tzinfo=timezone.utc)

        sequence_numbers = self.sender.schedule_messages(to_service_bus_message(message), scheduled_time)
        logger.info(f"Scheduled message {message.message_id or '<no id>'} for {scheduled_time.isoformat()}")
        return list(sequence_numbers)

    def close(self) -> None:
        """Close the sender and, if owned, the client."""
        self.sender.close()
        if self.client is not None:
            self.client.close()
        logger.debug("Service Bus transport closed")

    def __enter__(self) -> ServiceBusTransport:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
