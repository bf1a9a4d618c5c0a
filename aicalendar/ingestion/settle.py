"""Run awaitables concurrently and report each outcome independently."""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc


@dataclasses.dataclass(frozen=True, slots=True)
class Fulfilled[T]:
    """An awaitable that completed with ``value``."""

    value: T


@dataclasses.dataclass(frozen=True, slots=True)
class Rejected:
    """An awaitable that raised ``error``."""

    error: Exception


type Settled[T] = Fulfilled[T] | Rejected


async def gather_settled[T](
    awaitables: cabc.Iterable[cabc.Awaitable[T]],
) -> list[Settled[T]]:
    """Await every item concurrently, preserving input order in the result.

    Ordinary exceptions become :class:`Rejected` outcomes so one failure never
    cancels its siblings. Exceptions outside the ``Exception`` hierarchy, such
    as ``KeyboardInterrupt`` or cancellation, are re-raised.
    """
    gathered = await asyncio.gather(*awaitables, return_exceptions=True)
    outcomes: list[Settled[T]] = []
    for result in gathered:
        if isinstance(result, Exception):
            outcomes.append(Rejected(result))
        elif isinstance(result, BaseException):
            raise result
        else:
            outcomes.append(Fulfilled(result))
    return outcomes
