"""Core msgbatch types: messages and errors."""

from .errors import ConfigurationError, MessageTooLarge, MsgBatchError, TransportSendFailure
from .messages import (
    JSON_CONTENT_TYPE,
    AppendResult,
    Message,
    NotificationMessage,
    NotificationType,
    OrderItem,
    OrderMessage,
    encode_body,
    new_message_id,
)

__all__ = [
    # Messages
    "Message",
    "AppendResult",
    "OrderItem",
    "OrderMessage",
    "NotificationMessage",
    "NotificationType",
    "JSON_CONTENT_TYPE",
    "encode_body",
    "new_message_id",
    # Errors
    "MsgBatchError",
    "MessageTooLarge",
    "TransportSendFailure",
    "ConfigurationError",
]
