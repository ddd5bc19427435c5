"""Tests for the order and notification workflows and the command-line entry point."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from loguru import logger

from msgbatch.cli import main
from msgbatch.orchestrator import OrderSendWorkflow, publish_notifications, run_demo, sample_notifications, sample_orders
from msgbatch.transport import CapacityUnit, InMemoryTransport


def test_sample_orders_are_deterministic():
    first = sample_orders(3)
    second = sample_orders(3)

    assert [order.order_id for order in first] == ["ORD-002", "ORD-003", "ORD-004"]
    assert [order.model_dump(exclude={"created_at"}) for order in first] == [order.model_dump(exclude={"created_at"}) for order in second]


def test_workflow_sends_single_batched_and_scheduled():
    logger.info("Testing order workflow...")

    transport = InMemoryTransport(capacity=2, unit=CapacityUnit.COUNT)
    orders = sample_orders(5)

    summary = OrderSendWorkflow(transport).run(orders)

    assert [message.message_id for message in transport.single_messages] == ["ORD-001"]
    assert transport.single_messages[0].application_properties["region"] == "US-WEST"
    assert [message.message_id for message in transport.sent_messages] == [order.order_id for order in orders]
    assert [len(batch) for batch in transport.sent_batches] == [2, 2, 1]
    assert transport.scheduled[0][1].subject == "ScheduledOrder"
    assert summary.total_messages == 7
    assert summary.to_dict()["batches"] == 3


def test_workflow_skips_oversized_orders():
    transport = InMemoryTransport(capacity=220, unit=CapacityUnit.BYTES)
    orders = sample_orders(3)
    orders[1].customer_id = "CUST-" + "9" * 500

    result = OrderSendWorkflow(transport, skip_oversized=True).send_orders(orders)

    assert [message.message_id for message in result.skipped] == [orders[1].order_id]
    assert [message.message_id for message in transport.sent_messages] == [orders[0].order_id, orders[2].order_id]


def test_run_demo_prints_sections(capsys):
    summary = run_demo(count=4, capacity=3)

    output = capsys.readouterr().out
    assert "In-Memory Order Demo" in output
    assert "Batch 1: ORD-002, ORD-003, ORD-004" in output
    assert "Batch 2: ORD-005" in output
    assert summary.total_messages == 6


def test_cli_demo(capsys):
    assert main(["demo", "--count", "2", "--capacity", "5"]) == 0
    assert "Demo complete: 4 messages" in capsys.readouterr().out


@pytest.mark.parametrize("command", ["send", "receive"])
def test_cli_reports_missing_connection(command, monkeypatch, capsys):
    monkeypatch.delenv("SERVICE_BUS_CONNECTION_STRING", raising=False)
    monkeypatch.delenv("SERVICE_BUS_FQDN", raising=False)

    assert main([command]) == 1
    assert "Service Bus connection string or namespace is required" in capsys.readouterr().err


def test_publish_notifications_sends_each_with_type_property():
    transport = InMemoryTransport(capacity=10)

    published = publish_notifications(transport, sample_notifications())

    assert published == 4
    assert [message.message_id for message in transport.single_messages] == ["EVT-001", "EVT-002", "EVT-003", "EVT-004"]
    assert [message.application_properties["type"] for message in transport.single_messages] == ["order", "inventory", "shipping", "order"]
    assert transport.sent_batches == [], "Notifications are published one by one"


@pytest.mark.parametrize("argv", [["demo", "--capacity", "0"], ["receive", "--max-messages", "-1"]])
def test_cli_rejects_non_positive_counts(argv, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)

    assert exc_info.value.code == 2
    assert "must be a positive integer" in capsys.readouterr().err


def test_cli_publish_sends_to_topic(monkeypatch, capsys):
    monkeypatch.setenv("SERVICE_BUS_CONNECTION_STRING", "Endpoint=sb://demo.servicebus.windows.net/;SharedAccessKey=x")
    client = MagicMock()

    with patch("msgbatch.transport.servicebus_transport.ServiceBusClient") as client_cls:
        client_cls.from_connection_string.return_value = client
        assert main(["publish", "--topic", "notifications"]) == 0

    client.get_topic_sender.assert_called_once_with(topic_name="notifications")
    assert client.get_topic_sender.return_value.send_messages.call_count == 4
    client.close.assert_called_once()
    assert "Published: shipping - EVT-003" in capsys.readouterr().out


def test_cli_subscribe_completes_notifications(monkeypatch, capsys):
    monkeypatch.setenv("SERVICE_BUS_CONNECTION_STRING", "Endpoint=sb://demo.servicebus.windows.net/;SharedAccessKey=x")
    client = MagicMock()
    receiver = client.get_subscription_receiver.return_value
    notification = SimpleNamespace(
        message_id="EVT-001",
        subject="order",
        application_properties={b"type": b"order"},
        body=[b'{"type": "order", "event_id": "EVT-001", "data": {"orderId": "ORD-100"}}'],
        dead_letter_reason=None,
    )
    receiver.receive_messages.return_value = [notification]

    with patch("msgbatch.cli.create_service_bus_client", return_value=client):
        assert main(["subscribe"]) == 0

    client.get_subscription_receiver.assert_called_once_with(topic_name="demo-topic", subscription_name="orders-sub")
    receiver.complete_message.assert_called_once_with(notification)
    receiver.close.assert_called_once()
    output = capsys.readouterr().out
    assert "order event: EVT-001" in output
    assert '"orderId": "ORD-100"' in output
