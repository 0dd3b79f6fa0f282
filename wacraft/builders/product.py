"""Product card builder: a product inside a view-once interactive message."""

from ..descriptors import ProductCard
from ..kinds import Kind
from .base import BuildContext, compact, text_block, view_once


async def build(descriptor: ProductCard, ctx: BuildContext) -> dict:
    product_image = None
    if descriptor.thumbnail is not None:
        product_image = (await ctx.media.resolve(descriptor.thumbnail, "image")).message

    product = compact({
        "productImage": product_image,
        "productId": descriptor.product_id,
        "title": descriptor.title,
        "description": descriptor.description,
        "currencyCode": descriptor.currency_code or ctx.defaults.get(Kind.PRODUCT, "currency_code"),
        "priceAmount1000": descriptor.price_amount1000,
        "retailerId": descriptor.retailer_id,
        "url": descriptor.url,
        "productImageCount": 1,
    })

    return view_once({
        "interactiveMessage": {
            "body": text_block(descriptor.body),
            "footer": text_block(descriptor.footer),
            "header": {
                "title": descriptor.title,
                "hasMediaAttachment": True,
                "productMessage": {
                    "product": product,
                    "businessOwnerJid": ctx.defaults.get(Kind.PRODUCT, "business_owner_jid"),
                },
            },
            "nativeFlowMessage": {"buttons": list(descriptor.buttons)},
        }
    })
