"""Injectable time source shared by the engines."""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the current aware UTC time."""
    return datetime.now(UTC)
