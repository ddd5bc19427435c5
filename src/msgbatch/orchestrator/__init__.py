"""Workflows that drive the transport, accumulator and receiver together."""

from .notification_workflow import publish_notifications, sample_notifications
from .order_workflow import OrderSendWorkflow, WorkflowSummary, run_demo, sample_orders

__all__ = ["OrderSendWorkflow", "WorkflowSummary", "run_demo", "sample_orders", "publish_notifications", "sample_notifications"]
