"""Bounded-timeout polling."""
from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable


def wait_for(
    predicate: Callable[[], Any],
    timeout: float,
    interval: float = 0.5,
    *,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Any] = time.sleep,
) -> Any:
    """Call predicate until it returns a truthy value, then return that value.

    The predicate is always called at least once. Raises TimeoutError once
    the deadline passes without a truthy result.
    """
    deadline = clock() + timeout
    while True:
        result = predicate()
        if result:
            return result
        remaining = deadline - clock()
        if remaining <= 0:
            raise TimeoutError(f"condition not met within {timeout:g}s")
        sleep(min(interval, remaining))
