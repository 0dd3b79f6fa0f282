"""Carousel builder.

Cards are built concurrently (``join_all``) and come back in input order.
A card that declares a product title becomes a product card; any other
card gets a plain image header.
"""

from ..descriptors import Carousel, CarouselCard
from ..kinds import Kind
from ..strategies import join_all
from .base import BuildContext, compact, native_flow_buttons, text_block, view_once


async def _product_header(card: CarouselCard, ctx: BuildContext) -> dict:
    d = ctx.defaults
    product_image = None
    if card.image_url:
        product_image = (await ctx.media.resolve(card.image_url, "image")).message

    return {
        "title": card.header_title,
        "subtitle": card.header_subtitle,
        "productMessage": {
            "product": compact({
                "productImage": product_image,
                "productId": card.product_id or d.get(Kind.CAROUSEL, "product_id"),
                "title": card.product_title,
                "description": card.product_description,
                "currencyCode": card.currency_code or d.get(Kind.CAROUSEL, "currency_code"),
                "priceAmount1000": card.price_amount1000 or d.get(Kind.CAROUSEL, "price_amount1000"),
                "retailerId": card.retailer_id or d.get(Kind.CAROUSEL, "retailer_id"),
                "url": card.url,
                "productImageCount": 1,
            }),
            "businessOwnerJid": card.business_owner_jid or d.get(Kind.CAROUSEL, "business_owner_jid"),
        },
        "hasMediaAttachment": False,
    }


async def _image_header(card: CarouselCard, ctx: BuildContext) -> dict:
    header = {
        "title": card.header_title,
        "subtitle": card.header_subtitle,
        "hasMediaAttachment": bool(card.image_url),
    }
    if card.image_url:
        media = await ctx.media.resolve(card.image_url, "image")
        header.update(media.to_payload())
    return header


async def build_card(card: CarouselCard, ctx: BuildContext) -> dict:
    header = await (_product_header(card, ctx) if card.is_product else _image_header(card, ctx))
    return {
        "header": header,
        "body": text_block(card.body_text),
        "footer": text_block(card.footer_text),
        "nativeFlowMessage": {"buttons": native_flow_buttons(card.buttons)},
    }


async def build(descriptor: Carousel, ctx: BuildContext) -> dict:
    cards = await join_all(descriptor.cards, lambda card: build_card(card, ctx))
    return view_once({
        "interactiveMessage": {
            "body": text_block(descriptor.caption),
            "footer": text_block(descriptor.footer),
            "carouselMessage": {"cards": cards, "messageVersion": 1},
        }
    })
