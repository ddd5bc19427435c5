"""Tests for the queue receiver (Service Bus client is mocked)."""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

from azure.servicebus import ServiceBusSubQueue

from msgbatch.config import get_config_manager
from msgbatch.receiver import QueueReceiver, SubscriptionReceiver, create_queue_receiver, create_subscription_receiver, decode_body, summarize


def received(message_id, body, subject="NewOrder", properties=None, dead_letter_reason=None):
    return SimpleNamespace(
        message_id=message_id,
        subject=subject,
        application_properties=properties or {},
        body=body,
        dead_letter_reason=dead_letter_reason,
    )


def make_client():
    """Client mock returning separate receivers for the queue and its dead-letter sub-queue."""
    client = MagicMock()
    main_receiver = MagicMock()
    dlq_receiver = MagicMock()
    dlq_receiver.__enter__.return_value = dlq_receiver

    def get_queue_receiver(queue_name, sub_queue=None, **kwargs):
        return dlq_receiver if sub_queue == ServiceBusSubQueue.DEAD_LETTER else main_receiver

    client.get_queue_receiver.side_effect = get_queue_receiver
    return client, main_receiver, dlq_receiver


def test_decode_body_handles_sections_and_text():
    order = {"order_id": "ORD-002", "total_amount": 249.99}

    assert decode_body(received("a", [json.dumps(order).encode("utf-8")])) == order
    assert decode_body(received("b", [b"plain ", b"text"])) == "plain text"
    assert decode_body(received("c", "already text")) == "already text"


def test_summarize_decodes_property_keys():
    message = received("ORD-003", [b"{}"], properties={b"priority": b"high", "region": "US-WEST"})

    summary = summarize(message)

    assert summary["application_properties"] == {"priority": "high", "region": "US-WEST"}
    assert summary["message_id"] == "ORD-003"
    assert summary["dead_letter_reason"] is None


def test_peek():
    client, main_receiver, _ = make_client()
    main_receiver.peek_messages.return_value = [received("ORD-001", [b"{}"]), received("ORD-002", [b"{}"])]

    peeked = QueueReceiver(client, "demo-queue").peek(5)

    main_receiver.peek_messages.assert_called_once_with(max_message_count=5)
    assert [summary["message_id"] for summary in peeked] == ["ORD-001", "ORD-002"]


def test_process_completes_and_abandons():
    client, main_receiver, _ = make_client()
    good = received("ORD-002", [b'{"order_id": "ORD-002"}'])
    bad = received("ORD-FAIL", [b'{"order_id": "ORD-FAIL"}'])
    main_receiver.receive_messages.return_value = [good, bad]

    def handler(summary):
        if "FAIL" in summary["body"]["order_id"]:
            raise RuntimeError("Simulated processing failure")

    result = QueueReceiver(client, "demo-queue").process(handler, max_messages=10, max_wait_time=5)

    main_receiver.receive_messages.assert_called_once_with(max_message_count=10, max_wait_time=5)
    main_receiver.complete_message.assert_called_once_with(good)
    main_receiver.abandon_message.assert_called_once_with(bad)
    assert (result.received, result.completed, result.abandoned) == (2, 1, 1)
    assert "Simulated processing failure" in result.errors[0]


def test_peek_dead_letters_uses_sub_queue():
    client, _, dlq_receiver = make_client()
    dlq_receiver.peek_messages.return_value = [received("ORD-FAIL", [b"{}"], dead_letter_reason="MaxDeliveryCountExceeded")]

    dead_letters = QueueReceiver(client, "demo-queue").peek_dead_letters(5)

    client.get_queue_receiver.assert_any_call(queue_name="demo-queue", sub_queue=ServiceBusSubQueue.DEAD_LETTER)
    assert dead_letters[0]["dead_letter_reason"] == "MaxDeliveryCountExceeded"
    dlq_receiver.__exit__.assert_called_once()


def test_context_manager_closes_receiver():
    client, main_receiver, _ = make_client()

    with create_queue_receiver(client, "orders") as receiver:
        assert receiver.queue_name == "orders"

    main_receiver.close.assert_called_once()


def make_subscription_client():
    """Client mock returning separate receivers for a subscription and its dead-letter sub-queue."""
    client = MagicMock()
    main_receiver = MagicMock()
    dlq_receiver = MagicMock()
    dlq_receiver.__enter__.return_value = dlq_receiver

    def get_subscription_receiver(topic_name, subscription_name, sub_queue=None, **kwargs):
        return dlq_receiver if sub_queue == ServiceBusSubQueue.DEAD_LETTER else main_receiver

    client.get_subscription_receiver.side_effect = get_subscription_receiver
    return client, main_receiver, dlq_receiver


def test_subscription_receiver_processes_notifications():
    client, main_receiver, _ = make_subscription_client()
    notification = received("EVT-001", [b'{"type": "order", "event_id": "EVT-001"}'], subject="order", properties={"type": "order"})
    main_receiver.receive_messages.return_value = [notification]
    seen = []

    receiver = SubscriptionReceiver(client, "demo-topic", "orders-sub")
    result = receiver.process(seen.append, max_messages=10, max_wait_time=5)

    client.get_subscription_receiver.assert_called_once_with(topic_name="demo-topic", subscription_name="orders-sub")
    main_receiver.complete_message.assert_called_once_with(notification)
    assert receiver.entity_name == "demo-topic/orders-sub"
    assert seen[0]["body"]["event_id"] == "EVT-001"
    assert (result.received, result.completed) == (1, 1)


def test_subscription_dead_letters_use_sub_queue():
    client, _, dlq_receiver = make_subscription_client()
    dlq_receiver.peek_messages.return_value = [received("EVT-009", [b"{}"], dead_letter_reason="FilterMismatch")]

    dead_letters = SubscriptionReceiver(client, "demo-topic", "orders-sub").peek_dead_letters(5)

    client.get_subscription_receiver.assert_any_call(
        topic_name="demo-topic",
        subscription_name="orders-sub",
        sub_queue=ServiceBusSubQueue.DEAD_LETTER,
    )
    assert dead_letters[0]["dead_letter_reason"] == "FilterMismatch"


def test_create_subscription_receiver_uses_configured_names(monkeypatch):
    monkeypatch.setenv("SERVICE_BUS_TOPIC_NAME", "alerts")
    monkeypatch.setenv("SERVICE_BUS_SUBSCRIPTION_NAME", "alerts-sub")
    get_config_manager().load_config()
    client, main_receiver, _ = make_subscription_client()

    with create_subscription_receiver(client) as receiver:
        assert (receiver.topic_name, receiver.subscription_name) == ("alerts", "alerts-sub")

    main_receiver.close.assert_called_once()
