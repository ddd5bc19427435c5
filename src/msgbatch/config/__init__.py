"""Configuration module for msgbatch."""

from .console import log, log_error, log_section, log_success
from .env import azure, get_env, load_env, require_env
from .logger_config import setup_logging
from .settings import BatchingConfig, ConfigManager, LoggingConfig, MsgBatchConfig, ServiceBusConfig, get_config_manager, get_current_config

__all__ = [
    "MsgBatchConfig",
    "ServiceBusConfig",
    "BatchingConfig",
    "LoggingConfig",
    "ConfigManager",
    "get_config_manager",
    "get_current_config",
    "setup_logging",
    "load_env",
    "require_env",
    "get_env",
    "azure",
    "log",
    "log_success",
    "log_error",
    "log_section",
]
