"""msgbatch - Size-bounded message batching for Azure Service Bus and friends."""

from .batcher import BatchAccumulator, BatchSendResult
from .config import get_config_manager
from .core import AppendResult, Message, MessageTooLarge, OrderMessage, TransportSendFailure
from .transport import CapacityUnit, InMemoryTransport, ServiceBusTransport

__version__ = "1.0.0"

__all__ = [
    "BatchAccumulator",
    "BatchSendResult",
    "AppendResult",
    "Message",
    "OrderMessage",
    "MessageTooLarge",
    "TransportSendFailure",
    "CapacityUnit",
    "InMemoryTransport",
    "ServiceBusTransport",
    "get_config_manager",
]
