"""Interactive card builder.

At most one header media is uploaded. Candidates are checked in the order
thumbnail, image, video, document; the first non-empty one is used and
the others are ignored.
"""

from typing import Optional

from ..descriptors import InteractiveCard
from ..media import UploadedMedia
from .base import BuildContext, text_block


async def resolve_header_media(card: InteractiveCard, ctx: BuildContext) -> Optional[UploadedMedia]:
    if card.thumbnail:
        return await ctx.media.resolve(card.thumbnail, "image")
    if card.image:
        return await ctx.media.resolve(card.image, "image")
    if card.video:
        return await ctx.media.resolve(card.video, "video")
    if card.document:
        return await ctx.media.resolve_document(
            card.document,
            thumbnail=card.jpeg_thumbnail,
            file_name=card.file_name,
            mimetype=card.mimetype,
        )
    return None


async def build(descriptor: InteractiveCard, ctx: BuildContext) -> dict:
    media = await resolve_header_media(descriptor, ctx)

    message = {
        "body": text_block(descriptor.title),
        "footer": text_block(descriptor.footer),
    }

    if descriptor.buttons or descriptor.native_flow:
        message["nativeFlowMessage"] = {
            "buttons": list(descriptor.buttons),
            **(descriptor.native_flow or {}),
        }

    header = {"title": "", "hasMediaAttachment": media is not None}
    if media is not None:
        header.update(media.to_payload())
    message["header"] = header

    context_info = dict(descriptor.context_info or {})
    if descriptor.external_ad_reply:
        context_info["externalAdReply"] = dict(descriptor.external_ad_reply)
    if context_info:
        message["contextInfo"] = context_info

    return {"interactiveMessage": message}
