"""Message-volume reduction for context prompts.

Levels:
- low: keep every message
- medium: keep messages at even zero-based indices
- high: keep the first message, the last message, and every index divisible by 10

The high-level sampling is relied on by consumers of earlier exports and must
not change.
"""

from collections.abc import Sequence
from typing import TypeVar

COMPRESSION_LEVELS = ("low", "medium", "high")
DEFAULT_COMPRESSION_LEVEL = "medium"

# Every Nth message survives high compression
HIGH_COMPRESSION_STRIDE = 10

T = TypeVar("T")


def normalize_compression_level(level: str | None) -> str:
    """Map a requested compression level onto a known one, defaulting to medium."""
    if isinstance(level, str):
        key = level.strip().lower()
        if key in COMPRESSION_LEVELS:
            return key
    return DEFAULT_COMPRESSION_LEVEL


def filter_messages_by_compression(messages: Sequence[T], level: str | None) -> list[T]:
    """Select the messages retained at a compression level.

    Args:
        messages: Messages in ascending sequence order
        level: One of low, medium, high (anything else is treated as medium)

    Returns:
        The retained messages in their original relative order
    """
    level = normalize_compression_level(level)

    if level == "low":
        return list(messages)

    if level == "medium":
        return [msg for index, msg in enumerate(messages) if index % 2 == 0]

    last_index = len(messages) - 1
    return [
        msg
        for index, msg in enumerate(messages)
        if index == 0 or index == last_index or index % HIGH_COMPRESSION_STRIDE == 0
    ]
