"""Execution strategies for multi-part messages.

Two ways of running a batch of async steps:

- ``join_all``: run concurrently, return results in input order. Carousel
  cards use this; upload completion order never leaks into the payload.
- ``ordered_chain``: run one at a time in input order, stopping at the
  first failure. Album children use this because each one references the
  parent key, which exists only after the parent relay completed.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Iterable, TypeVar

from .kinds import Kind

T = TypeVar("T")
R = TypeVar("R")


class ExecutionStrategy(str, Enum):
    SINGLE = "single"                # materialize, relay once
    JOIN_ALL = "join_all"            # concurrent parts joined, then relay once
    ORDERED_CHAIN = "ordered_chain"  # parent relay, then children in order
    DIRECT = "direct"                # relay a self-made envelope, no materialize


KIND_STRATEGY: dict[Kind, ExecutionStrategy] = {
    Kind.PAYMENT: ExecutionStrategy.SINGLE,
    Kind.PRODUCT: ExecutionStrategy.SINGLE,
    Kind.INTERACTIVE: ExecutionStrategy.SINGLE,
    Kind.CAROUSEL: ExecutionStrategy.JOIN_ALL,
    Kind.ALBUM: ExecutionStrategy.ORDERED_CHAIN,
    Kind.EVENT: ExecutionStrategy.SINGLE,
    Kind.POLL_RESULT: ExecutionStrategy.SINGLE,
    Kind.STATUS_MENTION: ExecutionStrategy.SINGLE,
    Kind.ORDER: ExecutionStrategy.SINGLE,
    Kind.GROUP_STATUS: ExecutionStrategy.DIRECT,
}


def strategy_for(kind: Kind) -> ExecutionStrategy:
    return KIND_STRATEGY[kind]


async def join_all(items: Iterable[T], step: Callable[[T], Awaitable[R]]) -> list[R]:
    """Run ``step`` over all items concurrently; results keep input order.

    Every step settles before anything is raised; the exception of the
    earliest failing item (by input position) is the one propagated.
    """
    results = await asyncio.gather(*(step(item) for item in items), return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


async def ordered_chain(items: Iterable[T], step: Callable[[int, T], Awaitable[R]]) -> list[R]:
    """Run ``step(index, item)`` sequentially; stops at the first exception."""
    results = []
    for index, item in enumerate(items):
        results.append(await step(index, item))
    return results
