"""Cooperative cancellation for in-flight inference calls."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

from translator.errors import TranslationCancelledError

T = TypeVar("T")


class CancellationToken:
    """One-shot abort signal shared between the orchestrator and the client."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise TranslationCancelledError()


async def run_cancellable(awaitable: Awaitable[T], token: Optional[CancellationToken]) -> T:
    """Await ``awaitable`` unless ``token`` fires first.

    When the token wins, the pending work is cancelled and
    :class:`TranslationCancelledError` is raised instead of returning.
    """
    if token is None:
        return await awaitable
    if token.cancelled:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise TranslationCancelledError()

    work = asyncio.ensure_future(awaitable)
    abort = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({work, abort}, return_when=asyncio.FIRST_COMPLETED)
    except BaseException:
        work.cancel()
        raise
    finally:
        abort.cancel()

    if work in done:
        return work.result()

    work.cancel()
    await asyncio.gather(work, return_exceptions=True)
    raise TranslationCancelledError()


__all__ = ["CancellationToken", "run_cancellable"]
