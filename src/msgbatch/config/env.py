"""Environment loading helpers shared by the samples."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

from dotenv import find_dotenv, load_dotenv
from loguru import logger

from ..core.errors import ConfigurationError


def load_env(example_dir: Optional[Union[str, Path]] = None) -> None:
    """Load variables from ``.env`` files.

    The example directory's ``.env`` is read first, then the nearest ``.env``
    found from the working directory upwards (the project root).
    Variables that are already set are never overridden.
    """
    if example_dir:
        example_env = Path(example_dir) / ".env"
        if load_dotenv(example_env, override=False):
            logger.debug(f"Loaded environment from {example_env}")

    root_env = find_dotenv(usecwd=True)
    if root_env and load_dotenv(root_env, override=False):
        logger.debug(f"Loaded environment from {root_env}")


def require_env(name: str) -> str:
    """Get a required environment variable or raise ``ConfigurationError``."""
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(f"Missing required environment variable: {name}")
    return value


def get_env(name: str, default: str = "") -> str:
    """Get an optional environment variable with a default."""
    return os.getenv(name) or default


class AzureSettings:
    """Azure deployment settings, read lazily from the environment."""

    @property
    def resource_group(self) -> str:
        return get_env("AZURE_RESOURCE_GROUP", "rg-azure-py-services")

    @property
    def location(self) -> str:
        return get_env("AZURE_LOCATION", "eastus")


azure = AzureSettings()
