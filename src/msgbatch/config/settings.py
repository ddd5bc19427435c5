"""Configuration management for msgbatch.

This module provides configuration for the Service Bus connection, the
batching policy and logging, with environment variable overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger

DEFAULT_QUEUE_NAME = "demo-queue"
DEFAULT_TOPIC_NAME = "demo-topic"
DEFAULT_SUBSCRIPTION_NAME = "orders-sub"


@dataclass
class ServiceBusConfig:
    """Connection and entity settings for Azure Service Bus."""

    connection_string: str = ""
    fully_qualified_namespace: str = ""  # Used with DefaultAzureCredential
    queue_name: str = DEFAULT_QUEUE_NAME
    topic_name: str = DEFAULT_TOPIC_NAME
    subscription_name: str = DEFAULT_SUBSCRIPTION_NAME


@dataclass
class BatchingConfig:
    """Configuration for the batch accumulator."""

    max_batch_bytes: Optional[int] = None  # None = link maximum reported by the SDK
    skip_oversized: bool = False  # Skip messages that can never fit instead of aborting


@dataclass
class LoggingConfig:
    """Configuration for loguru sinks."""

    level: str = "INFO"
    log_file: Optional[Path] = None
    rotation: str = "10 MB"
    retention: str = "7 days"


@dataclass
class MsgBatchConfig:
    """Complete msgbatch configuration."""

    service_bus: ServiceBusConfig = field(default_factory=ServiceBusConfig)
    batching: BatchingConfig = field(default_factory=BatchingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        """Apply environment variable overrides."""
        self._apply_env_overrides()

    def _apply_env_overrides(self):
        """Apply configuration overrides from environment variables."""
        # Service Bus settings
        if connection_string := os.getenv("SERVICE_BUS_CONNECTION_STRING"):
            self.service_bus.connection_string = connection_string

        if fqdn := os.getenv("SERVICE_BUS_FQDN"):
            self.service_bus.fully_qualified_namespace = fqdn

        if queue_name := os.getenv("SERVICE_BUS_QUEUE_NAME"):
            self.service_bus.queue_name = queue_name

        if topic_name := os.getenv("SERVICE_BUS_TOPIC_NAME"):
            self.service_bus.topic_name = topic_name

        if subscription_name := os.getenv("SERVICE_BUS_SUBSCRIPTION_NAME"):
            self.service_bus.subscription_name = subscription_name

        # Batching settings
        if max_batch_bytes := os.getenv("MSGBATCH_MAX_BATCH_BYTES"):
            try:
                self.batching.max_batch_bytes = int(max_batch_bytes)
            except ValueError:
                logger.warning(f"Invalid max batch bytes: {max_batch_bytes}")

        if skip_oversized := os.getenv("MSGBATCH_SKIP_OVERSIZED"):
            self.batching.skip_oversized = skip_oversized.strip().lower() in ("1", "true", "yes", "on")

        # Logging
        if log_level := os.getenv("MSGBATCH_LOG_LEVEL"):
            self.logging.level = log_level.upper()

        if log_file := os.getenv("MSGBATCH_LOG_FILE"):
            self.logging.log_file = Path(log_file)

    def validate(self, entity: str = "queue") -> tuple[bool, list[str]]:
        """Validate the configuration.

        Args:
            entity: Entity the caller will use: "queue", "topic" or "subscription"

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = []

        if not self.service_bus.connection_string and not self.service_bus.fully_qualified_namespace:
            errors.append("Service Bus connection string or namespace is required")

        if entity == "queue" and not self.service_bus.queue_name:
            errors.append("Queue name is required")

        if entity in ("topic", "subscription") and not self.service_bus.topic_name:
            errors.append("Topic name is required")

        if entity == "subscription" and not self.service_bus.subscription_name:
            errors.append("Subscription name is required")

        if self.batching.max_batch_bytes is not None and self.batching.max_batch_bytes <= 0:
            errors.append("Max batch bytes must be positive")

        return len(errors) == 0, errors


class ConfigManager:
    """Manages msgbatch configuration."""

    def __init__(self):
        """Initialize configuration manager."""
        self._config: Optional[MsgBatchConfig] = None

    def load_config(
        self,
        queue_name: Optional[str] = None,
        topic_name: Optional[str] = None,
        subscription_name: Optional[str] = None,
        max_batch_bytes: Optional[int] = None,
        log_level: Optional[str] = None,
    ) -> MsgBatchConfig:
        """Load configuration with optional overrides.

        Args:
            queue_name: Queue name override
            topic_name: Topic name override
            subscription_name: Subscription name override
            max_batch_bytes: Batch size limit override
            log_level: Log level override

        Returns:
            Configured MsgBatchConfig instance
        """
        config = MsgBatchConfig()

        # Apply parameter overrides
        if queue_name:
            config.service_bus.queue_name = queue_name

        if topic_name:
            config.service_bus.topic_name = topic_name

        if subscription_name:
            config.service_bus.subscription_name = subscription_name

        if max_batch_bytes:
            config.batching.max_batch_bytes = max_batch_bytes

        if log_level:
            config.logging.level = log_level.upper()

        self._config = config
        return config

    def get_config(self) -> Optional[MsgBatchConfig]:
        """Get current configuration."""
        return self._config

    def validate_config(self) -> tuple[bool, list[str]]:
        """Validate current configuration.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        if not self._config:
            return False, ["No configuration loaded"]

        return self._config.validate()


# Global configuration manager instance
_config_manager = ConfigManager()


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager."""
    return _config_manager


def get_current_config() -> Optional[MsgBatchConfig]:
    """Get the current configuration."""
    return _config_manager.get_config()
