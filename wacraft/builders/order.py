"""Commerce order builder.

The thumbnail is best-effort: bytes are used as-is, a URL (plain string or
``{"url": ...}``) is fetched, and anything unusable or a failed fetch only
drops the thumbnail. The order itself is always built.
"""

import logging
from typing import Optional

from ..descriptors import Order
from ..kinds import Kind
from ..media import media_url
from .base import BuildContext, compact

logger = logging.getLogger("wacraft.builders.order")


async def fetch_thumbnail(descriptor: Order, ctx: BuildContext) -> Optional[bytes]:
    thumbnail = descriptor.thumbnail
    if not thumbnail:
        return None
    if isinstance(thumbnail, (bytes, bytearray)):
        return bytes(thumbnail)
    url = media_url(thumbnail)
    if url is None:
        logger.warning(f"Unusable order thumbnail of type {type(thumbnail).__name__}, dropping it")
        return None
    if ctx.thumbnail_fetcher is None:
        logger.warning(f"No thumbnail fetcher configured, dropping order thumbnail {url}")
        return None
    try:
        return await ctx.thumbnail_fetcher.fetch(url)
    except Exception as e:
        logger.warning(f"Failed to download order thumbnail {url}: {e}")
        return None


async def build(descriptor: Order, ctx: BuildContext) -> dict:
    d = ctx.defaults
    return {
        "orderMessage": compact({
            "orderId": d.get(Kind.ORDER, "order_id"),
            "thumbnail": await fetch_thumbnail(descriptor, ctx),
            "itemCount": descriptor.item_count,
            "status": "ACCEPTED",
            "surface": "CATALOG",
            "message": descriptor.message,
            "orderTitle": descriptor.order_title,
            "sellerJid": d.get(Kind.ORDER, "seller_jid"),
            "token": d.get(Kind.ORDER, "token"),
            "totalAmount1000": descriptor.total_amount1000,
            "totalCurrencyCode": descriptor.total_currency_code or d.get(Kind.ORDER, "currency"),
            "messageVersion": 2,
        })
    }
