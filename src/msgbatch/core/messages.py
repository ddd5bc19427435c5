"""Message models for the msgbatch send pipeline.

This module defines the immutable ``Message`` that flows through the
accumulator and transports, and the pydantic payload models used by the
order samples: Payload → Message → Batch → Transport
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

JSON_CONTENT_TYPE = "application/json"


class AppendResult(str, Enum):
    """Outcome of appending a message to the open batch."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"


def encode_body(body: Any) -> bytes:
    """Encode a message body the way it will go on the wire."""
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, BaseModel):
        return body.model_dump_json().encode("utf-8")
    return json.dumps(body, default=str).encode("utf-8")


@dataclass(frozen=True)
class Message:
    """Opaque payload plus optional metadata. Immutable once created."""

    body: Any = field(hash=False)
    subject: Optional[str] = None
    application_properties: Mapping[str, Any] = field(default_factory=dict, hash=False)
    message_id: Optional[str] = None
    content_type: Optional[str] = None
    scheduled_enqueue_time: Optional[datetime] = None

    def __post_init__(self):
        # Freeze the properties so callers cannot mutate a queued message
        object.__setattr__(self, "application_properties", MappingProxyType(dict(self.application_properties)))

    def __getstate__(self) -> Dict[str, Any]:
        """Pickle the properties as a plain dict."""
        state = dict(self.__dict__)
        state["application_properties"] = dict(self.application_properties)
        return state

    def __setstate__(self, state: Dict[str, Any]) -> None:
        for name, value in state.items():
            object.__setattr__(self, name, value)
        object.__setattr__(self, "application_properties", MappingProxyType(dict(self.application_properties)))

    @property
    def body_bytes(self) -> bytes:
        return encode_body(self.body)

    @property
    def size(self) -> int:
        """Encoded body size in bytes."""
        return len(self.body_bytes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert message to dictionary for logging and console output."""
        return {
            "message_id": self.message_id,
            "subject": self.subject,
            "content_type": self.content_type,
            "application_properties": dict(self.application_properties),
            "scheduled_enqueue_time": self.scheduled_enqueue_time.isoformat() if self.scheduled_enqueue_time else None,
            "size": self.size,
        }


class OrderItem(BaseModel):
    """A single line of an order."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    product_id: str = Field(..., min_length=1, description="Product identifier")
    quantity: int = Field(..., gt=0, description="Number of units ordered")


class OrderMessage(BaseModel):
    """Order payload sent by the Service Bus samples."""

    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True, extra="forbid")

    order_id: str = Field(..., min_length=1, description="Order identifier, reused as message id")
    customer_id: str = Field(..., min_length=1, description="Customer identifier")
    items: List[OrderItem] = Field(default_factory=list, description="Ordered products")
    total_amount: float = Field(..., ge=0, description="Order total")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Creation time (UTC)")

    @property
    def priority(self) -> str:
        return "high" if self.total_amount > 500 else "normal"

    def to_message(self, subject: str = "NewOrder", **properties: Any) -> Message:
        """Wrap this order into a ``Message`` ready for batching."""
        application_properties = {"priority": self.priority}
        application_properties.update(properties)

        return Message(
            body=self.model_dump(mode="json"),
            subject=subject,
            application_properties=application_properties,
            message_id=self.order_id,
            content_type=JSON_CONTENT_TYPE,
        )


class NotificationType(str, Enum):
    """Kinds of notification published to the topic."""

    ORDER = "order"
    INVENTORY = "inventory"
    SHIPPING = "shipping"


class NotificationMessage(BaseModel):
    """Event notification fanned out through a topic to its subscriptions."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    type: NotificationType = Field(..., description="Notification kind, used by subscription filters")
    event_id: str = Field(..., min_length=1, description="Event identifier, reused as message id")
    data: Dict[str, Any] = Field(default_factory=dict, description="Event payload")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Event time (UTC)")

    def to_message(self) -> Message:
        """Wrap this notification into a ``Message``; ``type`` is exposed for SQL filters."""
        return Message(
            body=self.model_dump(mode="json"),
            subject=self.type.value,
            application_properties={"type": self.type.value, "eventId": self.event_id},
            message_id=self.event_id,
            content_type=JSON_CONTENT_TYPE,
        )


def new_message_id(prefix: str = "msg") -> str:
    """Generate a unique message id."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"
