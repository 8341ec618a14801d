r"""Cooperative cancellation signal for pipeline calls.

A ``CancellationToken`` is handed to every suspension point of a call.
Firing it aborts the remaining steps of the call, which then fails with
``CancellationError``. Native ``asyncio`` task cancellation keeps
working as usual; the token is an extra, caller-controlled signal that
can be shared by several calls.

Example:
    ```pycon
    >>> import asyncio
    >>> from apiflow.cancellation import CancellationToken
    >>> token = CancellationToken()
    >>> token.cancelled
    False
    >>> token.cancel()
    >>> token.cancelled
    True

    ```
"""

from __future__ import annotations

__all__ = ["CancellationToken", "run_cancellable"]

import asyncio
from typing import TYPE_CHECKING, TypeVar

from apiflow.exceptions import CancellationError

if TYPE_CHECKING:
    from collections.abc import Awaitable

T = TypeVar("T")


class CancellationToken:
    r"""Implement a one-shot cancellation signal.

    The token starts in the non-cancelled state and can only move to the
    cancelled state. It is safe to share a token between concurrent
    calls running on the same event loop.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(cancelled={self.cancelled})"

    @property
    def cancelled(self) -> bool:
        r"""``True`` if the token has fired."""
        return self._event.is_set()

    def cancel(self) -> None:
        r"""Fire the token.

        Calling this method more than once has no additional effect.
        """
        self._event.set()

    def raise_if_cancelled(self) -> None:
        r"""Raise ``CancellationError`` if the token has fired.

        Raises:
            CancellationError: If the token has fired.
        """
        if self.cancelled:
            msg = "operation was cancelled"
            raise CancellationError(msg)

    async def wait(self) -> None:
        r"""Suspend until the token fires."""
        await self._event.wait()

    async def run(self, awaitable: Awaitable[T]) -> T:
        r"""Await ``awaitable`` unless the token fires first.

        If the token fires before ``awaitable`` completes, the work is
        cancelled and awaited so that it releases its resources, then
        ``CancellationError`` is raised. If ``awaitable`` completes first,
        its result is returned (or its exception raised) even if the
        token fires afterwards.

        Args:
            awaitable: The awaitable to run.

        Returns:
            The result of ``awaitable``.

        Raises:
            CancellationError: If the token fires first. The token is
                also checked before starting the work, in which case
                ``awaitable`` is never scheduled.

        Example:
            ```pycon
            >>> import asyncio
            >>> from apiflow.cancellation import CancellationToken
            >>> async def main():
            ...     return await CancellationToken().run(asyncio.sleep(0, result=42))
            ...
            >>> asyncio.run(main())
            42

            ```
        """
        if self.cancelled:
            # Close coroutine objects so they do not trigger "never awaited" warnings
            close = getattr(awaitable, "close", None)
            if close is not None:
                close()
            self.raise_if_cancelled()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
                await asyncio.wait({task})

        if task.cancelled():
            msg = "operation was cancelled while in flight"
            raise CancellationError(msg)
        return task.result()


async def run_cancellable(
    awaitable: Awaitable[T], cancellation_token: CancellationToken | None
) -> T:
    r"""Await ``awaitable``, racing it against ``cancellation_token`` if
    one is given.

    Args:
        awaitable: The awaitable to run.
        cancellation_token: The optional token. If ``None``, the
            awaitable is awaited directly and only native task
            cancellation applies.

    Returns:
        The result of ``awaitable``.

    Raises:
        CancellationError: If the token fires first.
    """
    if cancellation_token is None:
        return await awaitable
    return await cancellation_token.run(awaitable)
