"""Relay orchestration — materialize payloads and hand them to the transport.

``RelayOrchestrator`` is the public entry point of the composer. It owns no
state between calls: each ``handle_*`` validates its descriptor, builds a
fresh payload, then runs the execution strategy of its kind:

- SINGLE / JOIN_ALL: materialize once, relay once.
- ORDERED_CHAIN (album): relay the parent, then every child in order, each
  pointing back at the parent key. A failing child raises
  ``SequenceFailure``; the parent and earlier children stay delivered.
- DIRECT (group story): relay a self-made envelope under a fresh id,
  without asking the materializer for a key.

Nothing here retries. Errors leave with kind, jid and stage filled in.
"""

import logging
from typing import Any, Callable, Optional, Union

from .builders import BuildContext, build_payload
from .builders import album as album_builder
from .builders import status_mention as status_mention_builder
from .collaborators import (
    ContentGenerator,
    IdGenerator,
    MaterializedMessage,
    MaterializeOptions,
    Materializer,
    MessageKey,
    QuotedMessage,
    RelayOptions,
    RelayTransport,
    SendResult,
    ThumbnailFetcher,
    Uploader,
)
from .defaults import DefaultsPolicy
from .descriptors import Album, classify, coerce_descriptor
from .errors import ComposerError, RelayError, SequenceFailure, describe_error
from .kinds import Kind
from .media import MediaResolver
from .strategies import ExecutionStrategy, ordered_chain, strategy_for

logger = logging.getLogger("wacraft.relay")

QuotedLike = Optional[Union[QuotedMessage, dict]]


def _as_quoted(quoted: QuotedLike) -> Optional[QuotedMessage]:
    if quoted is None or isinstance(quoted, QuotedMessage):
        return quoted
    return QuotedMessage.from_dict(quoted)


class RelayOrchestrator:
    """Classifies, builds, materializes and relays rich content messages."""

    def __init__(
        self,
        uploader: Uploader,
        materializer: Materializer,
        transport: RelayTransport,
        ids: IdGenerator,
        *,
        content_generator: Optional[ContentGenerator] = None,
        thumbnail_fetcher: Optional[ThumbnailFetcher] = None,
        defaults: Optional[DefaultsPolicy] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self._media = MediaResolver(uploader)
        self._materializer = materializer
        self._transport = transport
        self._ids = ids
        self._content_generator = content_generator
        self._thumbnail_fetcher = thumbnail_fetcher
        self._defaults = defaults or DefaultsPolicy()
        self._clock = clock

    # ── Helpers ─────────────────────────────────────────────────

    def _context(self, jid: str, quoted: Optional[QuotedMessage]) -> BuildContext:
        ctx = BuildContext(
            jid=jid,
            media=self._media,
            defaults=self._defaults,
            quoted=quoted,
            ids=self._ids,
            thumbnail_fetcher=self._thumbnail_fetcher,
            content_generator=self._content_generator,
        )
        if self._clock is not None:
            ctx.clock = self._clock
        return ctx

    async def _materialize(self, jid: str, payload: dict, options: MaterializeOptions) -> MaterializedMessage:
        try:
            return await self._materializer.materialize(jid, payload, options)
        except ComposerError:
            raise
        except Exception as e:
            raise RelayError(f"materialize failed: {e}", stage="materialize") from e

    async def _relay(self, jid: str, message: dict, options: RelayOptions) -> Any:
        try:
            return await self._transport.relay(jid, message, options)
        except ComposerError:
            raise
        except Exception as e:
            raise RelayError(f"relay failed: {e}", stage="relay") from e

    async def _materialize_and_relay(
        self, kind: Kind, jid: str, payload: dict, options: MaterializeOptions
    ) -> SendResult:
        msg = await self._materialize(jid, payload, options)
        result = await self._relay(jid, msg.message, RelayOptions(message_id=msg.key.id))
        logger.info(f"Relayed {kind.value} {msg.key.id} to {jid}")
        return SendResult(kind=kind.value, key=msg.key, message=msg.message, relay_result=result)

    # ── Entry points ────────────────────────────────────────────

    def detect_type(self, descriptor: Any) -> Optional[Kind]:
        return classify(descriptor)

    async def send(self, jid: str, descriptor: Any, quoted: QuotedLike = None) -> Optional[SendResult]:
        """Classify and send. Returns None when the descriptor is not rich content."""
        kind = classify(descriptor)
        if kind is None:
            logger.debug(f"Descriptor for {jid} is not rich content")
            return None
        return await self.build(jid, kind, descriptor, quoted)

    async def build(self, jid: str, kind: Kind, descriptor: Any, quoted: QuotedLike = None) -> SendResult:
        """Validate, build and relay ``descriptor`` as ``kind``."""
        quoted = _as_quoted(quoted)
        try:
            typed = coerce_descriptor(kind, descriptor)
            typed.validate()
            ctx = self._context(jid, quoted)
            strategy = strategy_for(kind)

            if strategy is ExecutionStrategy.ORDERED_CHAIN:
                return await self._send_album(typed, ctx)
            if strategy is ExecutionStrategy.DIRECT:
                return await self._send_direct(kind, typed, ctx)
            if kind is Kind.STATUS_MENTION:
                return await self._send_status_mention(typed, ctx)

            payload = await build_payload(kind, typed, ctx)
            options = MaterializeOptions(quoted=quoted)
            if kind is Kind.POLL_RESULT:
                options.user_jid = self._ids.user_jid()
            return await self._materialize_and_relay(kind, jid, payload, options)
        except ComposerError as e:
            e.with_context(kind=kind, jid=jid, stage="build")
            logger.error(describe_error(e))
            raise

    async def handle_payment(self, jid: str, descriptor: Any, quoted: QuotedLike = None) -> SendResult:
        return await self.build(jid, Kind.PAYMENT, descriptor, quoted)

    async def handle_product(self, jid: str, descriptor: Any, quoted: QuotedLike = None) -> SendResult:
        return await self.build(jid, Kind.PRODUCT, descriptor, quoted)

    async def handle_interactive(self, jid: str, descriptor: Any, quoted: QuotedLike = None) -> SendResult:
        return await self.build(jid, Kind.INTERACTIVE, descriptor, quoted)

    async def handle_carousel(self, jid: str, descriptor: Any, quoted: QuotedLike = None) -> SendResult:
        return await self.build(jid, Kind.CAROUSEL, descriptor, quoted)

    async def handle_album(self, jid: str, descriptor: Any, quoted: QuotedLike = None) -> SendResult:
        return await self.build(jid, Kind.ALBUM, descriptor, quoted)

    async def handle_event(self, jid: str, descriptor: Any, quoted: QuotedLike = None) -> SendResult:
        return await self.build(jid, Kind.EVENT, descriptor, quoted)

    async def handle_poll_result(self, jid: str, descriptor: Any, quoted: QuotedLike = None) -> SendResult:
        return await self.build(jid, Kind.POLL_RESULT, descriptor, quoted)

    async def handle_status_mention(self, jid: str, descriptor: Any, quoted: QuotedLike = None) -> SendResult:
        return await self.build(jid, Kind.STATUS_MENTION, descriptor, quoted)

    async def handle_order_message(self, jid: str, descriptor: Any, quoted: QuotedLike = None) -> SendResult:
        return await self.build(jid, Kind.ORDER, descriptor, quoted)

    async def handle_group_story(self, jid: str, descriptor: Any, quoted: QuotedLike = None) -> SendResult:
        return await self.build(jid, Kind.GROUP_STATUS, descriptor, quoted)

    # ── Strategies ──────────────────────────────────────────────

    async def _send_album(self, descriptor: Album, ctx: BuildContext) -> SendResult:
        jid = ctx.jid
        parent_payload = await build_payload(Kind.ALBUM, descriptor, ctx)
        parent = await self._materialize(
            jid, parent_payload, MaterializeOptions(quoted=ctx.quoted, user_jid=self._ids.user_jid())
        )
        parent_result = await self._relay(jid, parent.message, RelayOptions(message_id=parent.key.id))
        logger.info(
            f"Relayed album parent {parent.key.id} to {jid} "
            f"({descriptor.image_count} images, {descriptor.video_count} videos)"
        )

        quote = album_builder.parent_quote(parent)
        delivered: list[MaterializedMessage] = []

        async def relay_child(index: int, item) -> MaterializedMessage:
            child_payload = await album_builder.build_child(item, ctx)
            child = await self._materialize(jid, child_payload, MaterializeOptions())
            linked = MaterializedMessage(
                key=child.key, message=album_builder.attach_parent_reference(child.message, parent.key)
            )
            await self._relay(jid, linked.message, RelayOptions(message_id=linked.key.id, quoted=quote))
            delivered.append(linked)
            return linked

        try:
            children = await ordered_chain(descriptor.items, relay_child)
        except Exception as e:
            index = len(delivered)
            raise SequenceFailure(
                f"album item #{index} failed: {e}",
                parent_key=parent.key,
                index=index,
                delivered=list(delivered),
                kind=Kind.ALBUM,
                jid=jid,
                stage=getattr(e, "stage", None) or "child",
            ) from e

        return SendResult(
            kind=Kind.ALBUM.value,
            key=parent.key,
            message=parent.message,
            relay_result=parent_result,
            children=children,
        )

    async def _send_direct(self, kind: Kind, descriptor, ctx: BuildContext) -> SendResult:
        payload = await build_payload(kind, descriptor, ctx)
        message_id = self._ids.generate()
        result = await self._relay(ctx.jid, payload, RelayOptions(message_id=message_id))
        logger.info(f"Relayed {kind.value} {message_id} to {ctx.jid}")
        return SendResult(
            kind=kind.value,
            key=MessageKey(remote_jid=ctx.jid, id=message_id, from_me=True),
            message=payload,
            relay_result=result,
        )

    async def _send_status_mention(self, descriptor, ctx: BuildContext) -> SendResult:
        media = await status_mention_builder.resolve_media(descriptor, ctx)
        status_mention_builder.warn_partial(ctx.jid)
        result = await self._materialize_and_relay(
            Kind.STATUS_MENTION, ctx.jid, status_mention_builder.placeholder(), MaterializeOptions()
        )
        result.media = media
        return result
