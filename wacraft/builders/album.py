"""Album builder: a parent envelope plus one child message per item.

The parent announces how many images and videos follow. Each child is the
item's own media message; once the parent has a key, ``attach_parent_reference``
adds the association metadata that groups it under the parent.
"""

from ..collaborators import MaterializedMessage, MessageKey, QuotedMessage, message_secret
from ..descriptors import Album, AlbumItem
from .base import BuildContext


async def build(descriptor: Album, ctx: BuildContext) -> dict:
    return {
        "messageContextInfo": {"messageSecret": message_secret()},
        "albumMessage": {
            "expectedImageCount": descriptor.image_count,
            "expectedVideoCount": descriptor.video_count,
        },
    }


async def build_child(item: AlbumItem, ctx: BuildContext) -> dict:
    media = await ctx.media.resolve(item.media, item.media_kind)
    message = dict(media.message)
    if item.caption:
        message["caption"] = item.caption
    return {media.field_name: message}


def attach_parent_reference(child: dict, parent_key: MessageKey) -> dict:
    """Return ``child`` with composite metadata pointing at the parent key."""
    linked = dict(child)
    linked["messageContextInfo"] = {
        **(child.get("messageContextInfo") or {}),
        "messageSecret": message_secret(),
        "messageAssociation": {
            "associationType": 1,
            "parentMessageKey": parent_key.to_dict(),
        },
        "isForwarded": True,
        "forwardingScore": 1,
        "isHighlighted": True,
    }
    return linked


def parent_quote(parent: MaterializedMessage) -> QuotedMessage:
    """Children are relayed quoting the parent as our own message."""
    key = MessageKey(
        remote_jid=parent.key.remote_jid,
        id=parent.key.id,
        from_me=True,
        participant=parent.key.participant,
    )
    return QuotedMessage(key=key, message=parent.message)
