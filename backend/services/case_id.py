"""
Case ID generation.

Case IDs look like ``CIVIC-3F2A-9B01`` and are unique across issues and
suggestions together. The generator only produces candidates; uniqueness is
checked by the caller through the ``exists`` callback.
"""

import re
import secrets
import time
from typing import Callable, Optional

from loguru import logger

CASE_ID_PREFIX = "CIVIC"
MAX_ATTEMPTS = 10
CASE_ID_PATTERN = re.compile(r"^CIVIC-[0-9A-F]{4}-[0-9A-F]{4}$")
FALLBACK_PATTERN = re.compile(r"^CIVIC-[0-9A-F]{4}-[0-9A-Z]{4}$")

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _block() -> str:
    return secrets.token_hex(2).upper()


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_case_id() -> str:
    """Return a random ``CIVIC-XXXX-XXXX`` candidate (2 random bytes per block)."""
    return f"{CASE_ID_PREFIX}-{_block()}-{_block()}"


def fallback_case_id(now_ms: Optional[int] = None) -> str:
    """
    Timestamp-suffixed ID used once random candidates keep colliding.

    The second block is the last four base-36 digits of the epoch time in
    milliseconds, so generation always terminates.
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    suffix = _to_base36(now_ms)[-4:].rjust(4, "0")
    return f"{CASE_ID_PREFIX}-{_block()}-{suffix}"


def generate_unique_case_id(
    exists: Callable[[str], bool], max_attempts: int = MAX_ATTEMPTS
) -> str:
    """
    Generate a case ID not already in use.

    Args:
        exists: Returns True when a candidate is already taken (checked
            against both issues and suggestions)
        max_attempts: Random candidates to try before falling back

    Returns:
        An unused random case ID, or the timestamp fallback
    """
    for _ in range(max_attempts):
        candidate = generate_case_id()
        if not exists(candidate):
            return candidate

    logger.warning(
        f"Case ID generation collided {max_attempts} times; using timestamp fallback"
    )
    return fallback_case_id()
