"""Per-request cancellation scopes.

Every fetch gets a fresh scope. Cancelling the scope cancels the task doing
the request, and a result or failure that arrives after cancellation is
reported as RequestCancelled so the caller never applies it.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from rentease_messaging.application.exceptions import RequestCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationScope:
    def __init__(self, name: str = "request") -> None:
        self.name = name
        self._cancelled = False
        self._tasks: set[asyncio.Future[Any]] = set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        for task in list(self._tasks):
            task.cancel()
        logger.debug("Cancelled %s (%d in flight)", self.name, len(self._tasks))

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RequestCancelled(f"{self.name} cancelled")

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` inside this scope."""
        if self._cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        try:
            result = await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if self._cancelled and not (current is not None and current.cancelling()):
                raise RequestCancelled(f"{self.name} cancelled") from None
            raise
        except Exception as exc:
            if self._cancelled:
                raise RequestCancelled(f"{self.name} cancelled") from exc
            raise
        finally:
            self._tasks.discard(task)
        self.raise_if_cancelled()
        return result
