from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar


T = TypeVar("T")


class TurnCancelledError(Exception):
    """Raised when the user stops an in-flight turn."""


class CancellationToken:
    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "stopped_by_user") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise TurnCancelledError(self.reason or "cancelled")


async def run_cancellable(awaitable: Awaitable[T], token: CancellationToken | None) -> T:
    """Await ``awaitable`` unless ``token`` fires first.

    The losing task is cancelled, so an aborted provider call does not keep
    running in the background.
    """
    if token is None:
        return await awaitable
    if token.cancelled:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        token.raise_if_cancelled()
    work = asyncio.ensure_future(awaitable)
    stopper = asyncio.ensure_future(token.wait())
    try:
        done, _pending = await asyncio.wait({work, stopper}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        work.cancel()
        stopper.cancel()
        raise
    if work in done:
        stopper.cancel()
        return work.result()
    work.cancel()
    raise TurnCancelledError(token.reason or "cancelled")
