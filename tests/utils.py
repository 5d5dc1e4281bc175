"""Test utilities for collecting records from the drivers."""

from collections.abc import Awaitable, Callable
from typing import Any


def collect_results() -> tuple[Callable[[Any], None], list[Any]]:
    """Create a callback that collects results in a list.

    Returns:
        A tuple of (callback_function, results_list).

    Example:
        callback, results = collect_results()
        driver = SyncDriver(url, path, on_record=callback)
        driver.run()
        assert len(results) > 0
    """
    results: list[Any] = []

    def callback(data: Any) -> None:
        results.append(data)

    return callback, results


def collect_results_async() -> tuple[
    Callable[[Any], Awaitable[None]], list[Any]
]:
    """Async version of collect_results for use with AsyncDriver."""
    results: list[Any] = []

    async def callback(data: Any) -> None:
        results.append(data)

    return callback, results
