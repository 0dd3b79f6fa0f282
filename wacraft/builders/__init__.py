"""Payload builders, one per message kind.

Maps each kind to its builder and exposes ``build_payload`` for callers
that want the payload tree without materializing or relaying it.

Status mentions have no entry: their upload result goes back to the caller
next to a fixed placeholder, so the orchestrator composes them from
``status_mention.resolve_media`` and ``status_mention.placeholder``.
"""

from typing import Awaitable, Callable, Optional

from ..kinds import Kind
from . import album, carousel, event, group_story, interactive, order, payment, poll, product
from .base import BuildContext

Builder = Callable[..., Awaitable[dict]]

# Kind → builder mapping
_BUILDER_MAP: dict[Kind, Builder] = {
    Kind.PAYMENT: payment.build,
    Kind.PRODUCT: product.build,
    Kind.INTERACTIVE: interactive.build,
    Kind.CAROUSEL: carousel.build,
    Kind.ALBUM: album.build,
    Kind.EVENT: event.build,
    Kind.POLL_RESULT: poll.build,
    Kind.ORDER: order.build,
    Kind.GROUP_STATUS: group_story.build,
}


def get_builder(kind: Kind) -> Optional[Builder]:
    return _BUILDER_MAP.get(kind)


async def build_payload(kind: Kind, descriptor, ctx: BuildContext) -> dict:
    """Build the payload tree for an already validated descriptor.

    For albums this is the parent envelope only.
    """
    builder = get_builder(kind)
    if builder is None:
        raise RuntimeError(f"No builder for kind: {kind}")
    return await builder(descriptor, ctx)


__all__ = ["BuildContext", "build_payload", "get_builder"]
