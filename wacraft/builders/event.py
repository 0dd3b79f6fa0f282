"""Calendar event builder."""

from typing import Optional, Union

from ..collaborators import message_secret
from ..descriptors import EventDetails
from ..errors import MalformedDescriptor
from ..kinds import Kind
from .base import BuildContext, view_once


def coerce_time(value: Optional[Union[int, float, str]], fallback: int) -> int:
    """Millisecond timestamp from a number or numeric string.

    ``fallback`` when absent or zero.
    """
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise MalformedDescriptor(f"not a timestamp: {value!r}", kind=Kind.EVENT, stage="build") from None
    if not value:
        return fallback
    return int(value)


async def build(descriptor: EventDetails, ctx: BuildContext) -> dict:
    now = ctx.clock()
    duration = ctx.defaults.get(Kind.EVENT, "duration_ms")

    return view_once({
        "messageContextInfo": {
            "deviceListMetadata": {},
            "deviceListMetadataVersion": 2,
            "messageSecret": message_secret(),
        },
        "eventMessage": {
            "contextInfo": {"mentionedJid": [ctx.jid]},
            "isCanceled": descriptor.is_canceled,
            "name": descriptor.name,
            "description": descriptor.description,
            "location": ctx.defaults.or_default(Kind.EVENT, "location", descriptor.location),
            "joinLink": descriptor.join_link,
            "startTime": coerce_time(descriptor.start_time, now),
            "endTime": coerce_time(descriptor.end_time, now + duration),
            "extraGuestsAllowed": descriptor.extra_guests_allowed,
        },
    })
