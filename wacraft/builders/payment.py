"""Payment request builder."""

from ..descriptors import PaymentRequest
from ..kinds import Kind
from .base import BuildContext, quoted_context


def _note_message(descriptor: PaymentRequest, ctx: BuildContext) -> dict:
    """A sticker note wins over a text note; both quote the caller's message."""
    context = quoted_context(ctx.quoted, fallback_participant=descriptor.sender)

    if descriptor.sticker:
        sticker = dict(descriptor.sticker["stickerMessage"])
        sticker["contextInfo"] = context
        return {"stickerMessage": sticker}
    if descriptor.note:
        return {"extendedTextMessage": {"text": descriptor.note, "contextInfo": context}}
    return {}


async def build(descriptor: PaymentRequest, ctx: BuildContext) -> dict:
    d = ctx.defaults
    return {
        "requestPaymentMessage": {
            "expiryTimestamp": d.or_default(Kind.PAYMENT, "expiry", descriptor.expiry),
            "amount1000": d.or_default(Kind.PAYMENT, "amount", descriptor.amount),
            "currencyCodeIso4217": descriptor.currency or d.get(Kind.PAYMENT, "currency"),
            "requestFrom": descriptor.request_from or d.get(Kind.PAYMENT, "request_from"),
            "noteMessage": _note_message(descriptor, ctx),
            "background": d.or_default(Kind.PAYMENT, "background", descriptor.background),
        }
    }
