"""Console formatting helpers for the sample workflows."""

from __future__ import annotations

import json
import sys
from typing import Any, Optional

SECTION_WIDTH = 50


def log(message: str, data: Any = None) -> None:
    """Print a message, followed by pretty-printed JSON data if given."""
    print(f"\n{message}")
    if data is not None:
        print(json.dumps(data, indent=2, default=str))


def log_success(message: str) -> None:
    print(f"\n✅ {message}")


def log_error(message: str, error: Optional[BaseException] = None) -> None:
    print(f"\n❌ {message}", file=sys.stderr)
    if error is not None:
        print(f"   {error}", file=sys.stderr)


def log_section(title: str) -> None:
    """Print a section banner."""
    print(f"\n{'=' * SECTION_WIDTH}")
    print(title)
    print("=" * SECTION_WIDTH)
