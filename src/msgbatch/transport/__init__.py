"""Transport module for shipping batches to a queue-like service."""

from .base import Transport
from .memory_transport import CapacityUnit, InMemoryTransport, MemoryBatch
from .servicebus_transport import ServiceBusTransport, create_service_bus_client, to_service_bus_message

__all__ = [
    "Transport",
    "CapacityUnit",
    "InMemoryTransport",
    "MemoryBatch",
    "ServiceBusTransport",
    "create_service_bus_client",
    "to_service_bus_message",
]
