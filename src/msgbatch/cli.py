"""Command-line entry point for the msgbatch samples."""

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from azure.servicebus.exceptions import ServiceBusError
from loguru import logger

from .config import get_config_manager, load_env, log, log_error, log_section, log_success, setup_logging
from .core.errors import MsgBatchError
from .orchestrator import OrderSendWorkflow, publish_notifications, run_demo, sample_notifications, sample_orders
from .receiver import QueueReceiver, SubscriptionReceiver
from .transport import ServiceBusTransport, create_service_bus_client


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="msgbatch", description="Batch messages onto Azure Service Bus.")
    parser.add_argument("--log-level", default=None, help="Log level (default: MSGBATCH_LOG_LEVEL or INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    demo = subparsers.add_parser("demo", help="Run the order workflow against an in-memory transport")
    demo.add_argument("--count", type=_positive_int, default=10, help="Number of batched orders")
    demo.add_argument("--capacity", type=_positive_int, default=4, help="Messages per batch")

    send = subparsers.add_parser("send", help="Send orders to the configured Service Bus queue")
    send.add_argument("--count", type=_positive_int, default=3, help="Number of batched orders")
    send.add_argument("--max-batch-bytes", type=_positive_int, default=None, help="Batch size limit in bytes")
    send.add_argument("--queue", default=None, help="Queue name override")
    send.add_argument("--skip-oversized", action="store_true", help="Skip orders that can never fit a batch")

    receive = subparsers.add_parser("receive", help="Peek, process and check dead letters on the queue")
    receive.add_argument("--max-messages", type=_positive_int, default=10, help="Maximum messages to receive")
    receive.add_argument("--max-wait", type=float, default=5.0, help="Seconds to wait for messages")
    receive.add_argument("--queue", default=None, help="Queue name override")

    publish = subparsers.add_parser("publish", help="Publish sample notifications to the configured topic")
    publish.add_argument("--topic", default=None, help="Topic name override")

    subscribe = subparsers.add_parser("subscribe", help="Receive notifications from a topic subscription")
    subscribe.add_argument("--max-messages", type=_positive_int, default=10, help="Maximum messages to receive")
    subscribe.add_argument("--max-wait", type=float, default=5.0, help="Seconds to wait for messages")
    subscribe.add_argument("--topic", default=None, help="Topic name override")
    subscribe.add_argument("--subscription", default=None, help="Subscription name override")

    return parser


def _print_order(summary: dict) -> None:
    body = summary["body"] if isinstance(summary["body"], dict) else {}
    properties = summary["application_properties"]
    log(f"Processing order: {body.get('order_id', summary['message_id'])}")
    print(f"  Customer: {body.get('customer_id', '-')}")
    print(f"  Items: {len(body.get('items', []))}")
    print(f"  Total: ${body.get('total_amount', 0)}")
    print(f"  Priority: {properties.get('priority', 'normal')}")
    print(f"  Subject: {summary['subject']}")


def cmd_send(args: argparse.Namespace) -> int:
    config = get_config_manager().load_config(queue_name=args.queue, max_batch_bytes=args.max_batch_bytes, log_level=args.log_level)
    is_valid, errors = config.validate("queue")
    if not is_valid:
        log_error("Invalid configuration: " + "; ".join(errors))
        return 1

    log_section("Azure Service Bus - Message Sender")
    with ServiceBusTransport.from_config(config) as transport:
        workflow = OrderSendWorkflow(transport, skip_oversized=args.skip_oversized or config.batching.skip_oversized)
        summary = workflow.run(sample_orders(args.count))

    log_success(f"Sent {summary.total_messages} messages to {config.service_bus.queue_name}")
    return 0


def cmd_receive(args: argparse.Namespace) -> int:
    config = get_config_manager().load_config(queue_name=args.queue, log_level=args.log_level)
    is_valid, errors = config.validate("queue")
    if not is_valid:
        log_error("Invalid configuration: " + "; ".join(errors))
        return 1

    log_section("Azure Service Bus - Message Receiver")
    client = create_service_bus_client(config)
    try:
        with QueueReceiver(client, config.service_bus.queue_name) as receiver:
            log_section("Peeking Messages")
            peeked = receiver.peek(5)
            for summary in peeked:
                log(f"  - {summary['message_id']} ({summary['subject']})")

            if not peeked:
                log("No messages in queue. Run the sender first: msgbatch send")
                return 0

            log_section("Processing Messages")
            result = receiver.process(_print_order, max_messages=args.max_messages, max_wait_time=args.max_wait)

            log_section("Checking Dead-Letter Queue")
            dead_letters = receiver.peek_dead_letters(5)
            for summary in dead_letters:
                log(f"  - {summary['message_id']}: {summary['dead_letter_reason'] or 'Unknown reason'}")
            if not dead_letters:
                log("No dead-letter messages")
    finally:
        client.close()

    log_section("Receive Complete")
    log(
        "Summary:",
        {
            "peeked": len(peeked),
            "received": result.received,
            "completed": result.completed,
            "abandoned": result.abandoned,
            "dead_lettered": len(dead_letters),
        },
    )
    return 0


def _print_notification(summary: dict) -> None:
    body = summary["body"] if isinstance(summary["body"], dict) else {}
    log(f"{summary['subject'] or 'unknown'} event: {body.get('event_id', summary['message_id'])}")
    print(f"  Data: {json.dumps(body.get('data', {}))}")


def cmd_publish(args: argparse.Namespace) -> int:
    config = get_config_manager().load_config(topic_name=args.topic, log_level=args.log_level)
    is_valid, errors = config.validate("topic")
    if not is_valid:
        log_error("Invalid configuration: " + "; ".join(errors))
        return 1

    log_section("Azure Service Bus - Pub/Sub Publisher")
    with ServiceBusTransport.from_config(config, topic=True) as transport:
        published = publish_notifications(transport, sample_notifications())

    log_success(f"Published {published} notifications to {config.service_bus.topic_name}")
    return 0


def cmd_subscribe(args: argparse.Namespace) -> int:
    config = get_config_manager().load_config(topic_name=args.topic, subscription_name=args.subscription, log_level=args.log_level)
    is_valid, errors = config.validate("subscription")
    if not is_valid:
        log_error("Invalid configuration: " + "; ".join(errors))
        return 1

    sb_config = config.service_bus
    log_section(f"Subscribing to {sb_config.topic_name}/{sb_config.subscription_name}")
    client = create_service_bus_client(config)
    try:
        with SubscriptionReceiver(client, sb_config.topic_name, sb_config.subscription_name) as receiver:
            log("Waiting for notifications...")
            result = receiver.process(_print_notification, max_messages=args.max_messages, max_wait_time=args.max_wait)
    finally:
        client.close()

    if not result.received:
        log("No notifications found")

    log("Summary:", {"received": result.received, "completed": result.completed, "abandoned": result.abandoned})
    return 0


def cmd_demo(args: argparse.Namespace) -> int:
    run_demo(count=args.count, capacity=args.capacity)
    return 0


COMMANDS = {
    "demo": cmd_demo,
    "send": cmd_send,
    "receive": cmd_receive,
    "publish": cmd_publish,
    "subscribe": cmd_subscribe,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    load_env()
    setup_logging(get_config_manager().load_config().logging, level=args.log_level)

    try:
        return COMMANDS[args.command](args)
    except (MsgBatchError, ServiceBusError) as e:
        log_error(f"{args.command} failed", e)
        logger.exception(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
