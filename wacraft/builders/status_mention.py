"""Status mention builder (partial).

Only the placeholder half exists: optional media is uploaded, then a
protocol-level ``statusMentionMessage`` is emitted to the chat. Posting the
media to the status broadcast and linking the mention to that status is
not implemented; the uploaded media is handed back to the caller instead.
"""

import logging
from typing import Optional

from ..descriptors import StatusMention
from ..media import UploadedMedia
from .base import BuildContext

logger = logging.getLogger("wacraft.builders.status_mention")

STATUS_MENTION_PROTOCOL_TYPE = 15


async def resolve_media(descriptor: StatusMention, ctx: BuildContext) -> Optional[UploadedMedia]:
    if descriptor.image:
        return await ctx.media.resolve(descriptor.image, "image")
    if descriptor.video:
        return await ctx.media.resolve(descriptor.video, "video")
    return None


def placeholder() -> dict:
    return {
        "statusMentionMessage": {
            "message": {"protocolMessage": {"type": STATUS_MENTION_PROTOCOL_TYPE}},
        }
    }


def warn_partial(jid: str):
    logger.warning(
        f"Status mention to {jid}: sending placeholder only, status broadcast linkage is not implemented"
    )
