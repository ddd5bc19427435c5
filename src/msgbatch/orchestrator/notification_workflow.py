"""Topic publish workflow for the pub/sub sample.

Notifications are published one at a time to a topic; each subscription
then receives the subset its filter rule selects (``orders-sub`` takes
``type = 'order'``).
"""

from __future__ import annotations

from typing import Any, List, Sequence

from loguru import logger

from ..config.console import log, log_section
from ..core.messages import NotificationMessage, NotificationType


def sample_notifications() -> List[NotificationMessage]:
    """The four notifications published by the pub/sub sample."""
    return [
        NotificationMessage(type=NotificationType.ORDER, event_id="EVT-001", data={"orderId": "ORD-100", "status": "created"}),
        NotificationMessage(type=NotificationType.INVENTORY, event_id="EVT-002", data={"productId": "PROD-A", "quantity": -5}),
        NotificationMessage(type=NotificationType.SHIPPING, event_id="EVT-003", data={"orderId": "ORD-100", "carrier": "FedEx"}),
        NotificationMessage(type=NotificationType.ORDER, event_id="EVT-004", data={"orderId": "ORD-100", "status": "shipped"}),
    ]


def publish_notifications(transport: Any, notifications: Sequence[NotificationMessage]) -> int:
    """Publish each notification as its own message.

    Args:
        transport: Topic transport supporting ``send_message``
        notifications: Notifications to publish, in order

    Returns:
        Number of notifications published
    """
    log_section("Publishing Notifications to Topic")

    for notification in notifications:
        transport.send_message(notification.to_message())
        log(f"Published: {notification.type.value} - {notification.event_id}")

    log(f"Published {len(notifications)} notifications")
    logger.info(f"Published {len(notifications)} notifications")
    return len(notifications)
