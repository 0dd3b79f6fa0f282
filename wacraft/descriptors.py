"""Typed content descriptors and kind classification.

Raw descriptors arrive as loose dicts keyed by a marker field
(``{"pollResultMessage": {...}}``). ``parse_descriptor`` turns one into the
matching dataclass below; ``classify`` answers which kind a descriptor is,
for both raw dicts and typed descriptors.

Every descriptor has ``validate()``, which raises ``MalformedDescriptor``
for missing or mistyped required fields. The orchestrator calls it before
touching any collaborator.
"""

import numbers
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .errors import MalformedDescriptor
from .kinds import Kind, MARKERS


def _as_dict(value: Any, kind: Kind) -> dict:
    if not isinstance(value, dict):
        raise MalformedDescriptor(
            f"expected an object for {kind.value}, got {type(value).__name__}", kind=kind, stage="parse"
        )
    return value


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _is_integral(value: Any) -> bool:
    """An int, or a float with no fractional part (JSON numbers may arrive as 3.0)."""
    return _is_int(value) or (isinstance(value, float) and value.is_integer())


def _is_numeric_str(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lstrip("-").isdigit()


def _check_buttons(buttons: Any, kind: Kind):
    if not isinstance(buttons, list):
        raise MalformedDescriptor("buttons must be a list", kind=kind, stage="validate")


# ============================================================
# PER-KIND DESCRIPTORS
# ============================================================

@dataclass
class PaymentRequest:
    amount: Optional[int] = None            # amount1000
    currency: Optional[str] = None
    expiry: Optional[int] = None
    request_from: Optional[str] = None
    note: Optional[str] = None
    sticker: Optional[dict] = None          # {"stickerMessage": {...}}
    background: Optional[dict] = None
    sender: Optional[str] = None            # fallback participant for the note context

    @classmethod
    def from_dict(cls, data: dict, sender: Optional[str] = None) -> "PaymentRequest":
        data = _as_dict(data, Kind.PAYMENT)
        return cls(
            amount=data.get("amount"),
            currency=data.get("currency"),
            expiry=data.get("expiry"),
            request_from=data.get("from"),
            note=data.get("note"),
            sticker=data.get("sticker"),
            background=data.get("background"),
            sender=sender,
        )

    def validate(self):
        for name in ("amount", "expiry"):
            value = getattr(self, name)
            if value is not None and not _is_int(value):
                raise MalformedDescriptor(f"payment {name} must be an integer", kind=Kind.PAYMENT, stage="validate")
        if self.sticker is not None:
            if not isinstance(self.sticker, dict) or not isinstance(self.sticker.get("stickerMessage"), dict):
                raise MalformedDescriptor("payment sticker needs a stickerMessage object", kind=Kind.PAYMENT, stage="validate")


@dataclass
class ProductCard:
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail: Any = None
    product_id: Optional[str] = None
    retailer_id: Optional[str] = None
    url: Optional[str] = None
    body: str = ""
    footer: str = ""
    buttons: list = field(default_factory=list)
    price_amount1000: Optional[int] = None
    currency_code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ProductCard":
        data = _as_dict(data, Kind.PRODUCT)
        return cls(
            title=data.get("title"),
            description=data.get("description"),
            thumbnail=data.get("thumbnail"),
            product_id=data.get("productId"),
            retailer_id=data.get("retailerId"),
            url=data.get("url"),
            body=data.get("body", ""),
            footer=data.get("footer", ""),
            buttons=data.get("buttons", []),
            price_amount1000=data.get("priceAmount1000"),
            currency_code=data.get("currencyCode"),
        )

    def validate(self):
        if not self.title:
            raise MalformedDescriptor("product needs a title", kind=Kind.PRODUCT, stage="validate")
        _check_buttons(self.buttons, Kind.PRODUCT)


@dataclass
class InteractiveCard:
    title: Optional[str] = None
    footer: Optional[str] = None
    thumbnail: Any = None
    image: Any = None
    video: Any = None
    document: Any = None
    mimetype: Optional[str] = None
    file_name: Optional[str] = None
    jpeg_thumbnail: Any = None
    context_info: Optional[dict] = None
    external_ad_reply: Optional[dict] = None
    buttons: list = field(default_factory=list)
    native_flow: Optional[dict] = None

    @classmethod
    def from_dict(cls, data: dict) -> "InteractiveCard":
        data = _as_dict(data, Kind.INTERACTIVE)
        return cls(
            title=data.get("title"),
            footer=data.get("footer"),
            thumbnail=data.get("thumbnail"),
            image=data.get("image"),
            video=data.get("video"),
            document=data.get("document"),
            mimetype=data.get("mimetype"),
            file_name=data.get("fileName"),
            jpeg_thumbnail=data.get("jpegThumbnail"),
            context_info=data.get("contextInfo"),
            external_ad_reply=data.get("externalAdReply"),
            buttons=data.get("buttons", []),
            native_flow=data.get("nativeFlowMessage"),
        )

    def validate(self):
        _check_buttons(self.buttons, Kind.INTERACTIVE)
        for name in ("context_info", "external_ad_reply", "native_flow"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, dict):
                raise MalformedDescriptor(f"interactive {name} must be an object", kind=Kind.INTERACTIVE, stage="validate")


@dataclass
class CardButton:
    name: str
    params: dict = field(default_factory=dict)


def _card_button(data: Any) -> CardButton:
    data = _as_dict(data, Kind.CAROUSEL)
    params = data.get("params") or {}
    if not isinstance(params, dict):
        raise MalformedDescriptor("carousel button params must be an object", kind=Kind.CAROUSEL, stage="parse")
    return CardButton(name=data.get("name"), params=params)


@dataclass
class CarouselCard:
    header_title: str = ""
    header_subtitle: str = ""
    image_url: Optional[str] = None
    product_title: Optional[str] = None
    product_id: Optional[str] = None
    product_description: str = ""
    currency_code: Optional[str] = None
    price_amount1000: Optional[Any] = None
    retailer_id: Optional[str] = None
    url: str = ""
    business_owner_jid: Optional[str] = None
    body_text: str = ""
    footer_text: str = ""
    buttons: list[CardButton] = field(default_factory=list)

    @property
    def is_product(self) -> bool:
        return bool(self.product_title)

    @classmethod
    def from_dict(cls, data: dict) -> "CarouselCard":
        data = _as_dict(data, Kind.CAROUSEL)
        buttons = data.get("buttons") or []
        _check_buttons(buttons, Kind.CAROUSEL)
        return cls(
            header_title=data.get("headerTitle") or "",
            header_subtitle=data.get("headerSubtitle") or "",
            image_url=data.get("imageUrl"),
            product_title=data.get("productTitle"),
            product_id=data.get("productId"),
            product_description=data.get("productDescription") or "",
            currency_code=data.get("currencyCode"),
            price_amount1000=data.get("priceAmount1000"),
            retailer_id=data.get("retailerId"),
            url=data.get("url") or "",
            business_owner_jid=data.get("businessOwnerJid"),
            body_text=data.get("bodyText") or "",
            footer_text=data.get("footerText") or "",
            buttons=[_card_button(b) for b in buttons],
        )


@dataclass
class Carousel:
    caption: str = ""
    footer: str = ""
    cards: list[CarouselCard] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "Carousel":
        data = _as_dict(data, Kind.CAROUSEL)
        cards = data.get("cards") or []
        if not isinstance(cards, list):
            raise MalformedDescriptor("carousel cards must be a list", kind=Kind.CAROUSEL, stage="parse")
        return cls(
            caption=data.get("caption", ""),
            footer=data.get("footer", ""),
            cards=[CarouselCard.from_dict(c) for c in cards],
        )

    def validate(self):
        if not self.cards:
            raise MalformedDescriptor("carousel needs at least one card", kind=Kind.CAROUSEL, stage="validate")
        for i, card in enumerate(self.cards):
            for button in card.buttons:
                if not button.name:
                    raise MalformedDescriptor(f"carousel card #{i} has a button without a name", kind=Kind.CAROUSEL, stage="validate")


@dataclass
class AlbumItem:
    media_kind: str                  # "image" | "video"
    media: Any
    caption: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "AlbumItem":
        data = _as_dict(data, Kind.ALBUM)
        present = [k for k in ("image", "video") if k in data]
        if len(present) != 1:
            raise MalformedDescriptor(
                "each album item needs exactly one of image or video", kind=Kind.ALBUM, stage="parse"
            )
        media_kind = present[0]
        return cls(media_kind=media_kind, media=data[media_kind], caption=data.get("caption"))


@dataclass
class Album:
    items: list[AlbumItem] = field(default_factory=list)

    @property
    def image_count(self) -> int:
        return sum(1 for item in self.items if item.media_kind == "image")

    @property
    def video_count(self) -> int:
        return sum(1 for item in self.items if item.media_kind == "video")

    @classmethod
    def from_dict(cls, data: list) -> "Album":
        if not isinstance(data, list):
            raise MalformedDescriptor("albumMessage must be a list of items", kind=Kind.ALBUM, stage="parse")
        return cls(items=[AlbumItem.from_dict(item) for item in data])

    def validate(self):
        if not self.items:
            raise MalformedDescriptor("album needs at least one item", kind=Kind.ALBUM, stage="validate")
        for i, item in enumerate(self.items):
            if item.media is None:
                raise MalformedDescriptor(f"album item #{i} has no media", kind=Kind.ALBUM, stage="validate")


@dataclass
class EventDetails:
    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[dict] = None
    join_link: str = ""
    start_time: Optional[Union[int, float, str]] = None   # ms timestamp or numeric string; 0 means unset
    end_time: Optional[Union[int, float, str]] = None
    is_canceled: bool = False
    extra_guests_allowed: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "EventDetails":
        data = _as_dict(data, Kind.EVENT)
        return cls(
            name=data.get("name"),
            description=data.get("description"),
            location=data.get("location"),
            join_link=data.get("joinLink") or "",
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            is_canceled=bool(data.get("isCanceled", False)),
            extra_guests_allowed=data.get("extraGuestsAllowed") is not False,
        )

    def validate(self):
        if not self.name:
            raise MalformedDescriptor("event needs a name", kind=Kind.EVENT, stage="validate")
        for label, value in (("startTime", self.start_time), ("endTime", self.end_time)):
            if value is None or _is_integral(value) or _is_numeric_str(value):
                continue
            raise MalformedDescriptor(
                f"event {label} must be a timestamp or numeric string, got {value!r}",
                kind=Kind.EVENT, stage="validate",
            )


@dataclass
class PollVote:
    option_name: Optional[str]
    option_vote_count: Union[int, str]


@dataclass
class PollResult:
    name: Optional[str] = None
    votes: list[PollVote] = field(default_factory=list)
    newsletter_name: Optional[str] = None
    newsletter_jid: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "PollResult":
        data = _as_dict(data, Kind.POLL_RESULT)
        votes = data.get("pollVotes") or []
        if not isinstance(votes, list):
            raise MalformedDescriptor("pollVotes must be a list", kind=Kind.POLL_RESULT, stage="parse")
        newsletter = _as_dict(data.get("newsletter") or {}, Kind.POLL_RESULT)
        votes = [_as_dict(v, Kind.POLL_RESULT) for v in votes]
        return cls(
            name=data.get("name"),
            votes=[PollVote(option_name=v.get("optionName"), option_vote_count=v.get("optionVoteCount", 0)) for v in votes],
            newsletter_name=newsletter.get("newsletterName"),
            newsletter_jid=newsletter.get("newsletterJid"),
        )

    def validate(self):
        if not self.name:
            raise MalformedDescriptor("poll result needs a name", kind=Kind.POLL_RESULT, stage="validate")
        if not self.votes:
            raise MalformedDescriptor("poll result needs at least one vote entry", kind=Kind.POLL_RESULT, stage="validate")
        for i, vote in enumerate(self.votes):
            if not vote.option_name:
                raise MalformedDescriptor(f"poll vote #{i} has no optionName", kind=Kind.POLL_RESULT, stage="validate")
            count = vote.option_vote_count
            if not (_is_number(count) or isinstance(count, str)):
                raise MalformedDescriptor(
                    f"poll vote #{i} count must be a number or string", kind=Kind.POLL_RESULT, stage="validate"
                )


@dataclass
class StatusMention:
    image: Any = None
    video: Any = None

    @classmethod
    def from_dict(cls, data: dict) -> "StatusMention":
        data = _as_dict(data, Kind.STATUS_MENTION)
        return cls(image=data.get("image"), video=data.get("video"))

    def validate(self):
        pass


@dataclass
class Order:
    thumbnail: Any = None          # bytes, URL string or {"url": ...}; unusable values are dropped
    item_count: int = 0
    message: Optional[str] = None
    order_title: Optional[str] = None
    total_amount1000: int = 0
    total_currency_code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Order":
        data = _as_dict(data, Kind.ORDER)
        return cls(
            thumbnail=data.get("thumbnail"),
            item_count=data.get("itemCount") or 0,
            message=data.get("message"),
            order_title=data.get("orderTitle"),
            total_amount1000=data.get("totalAmount1000") or 0,
            total_currency_code=data.get("totalCurrencyCode"),
        )

    def validate(self):
        for name in ("item_count", "total_amount1000"):
            if not _is_int(getattr(self, name)):
                raise MalformedDescriptor(f"order {name} must be an integer", kind=Kind.ORDER, stage="validate")


@dataclass
class GroupStory:
    content: dict = field(default_factory=dict)

    @property
    def has_message(self) -> bool:
        return bool(self.content.get("message"))

    @classmethod
    def from_dict(cls, data: dict) -> "GroupStory":
        return cls(content=_as_dict(data, Kind.GROUP_STATUS))

    def validate(self):
        if not self.content:
            raise MalformedDescriptor("group story has no content", kind=Kind.GROUP_STATUS, stage="validate")


Descriptor = Union[
    PaymentRequest, ProductCard, InteractiveCard, Carousel, Album,
    EventDetails, PollResult, StatusMention, Order, GroupStory,
]

_KIND_BY_TYPE: dict[type, Kind] = {
    PaymentRequest: Kind.PAYMENT,
    ProductCard: Kind.PRODUCT,
    InteractiveCard: Kind.INTERACTIVE,
    Album: Kind.ALBUM,
    EventDetails: Kind.EVENT,
    PollResult: Kind.POLL_RESULT,
    StatusMention: Kind.STATUS_MENTION,
    Order: Kind.ORDER,
    GroupStory: Kind.GROUP_STATUS,
    Carousel: Kind.CAROUSEL,
}

_TYPE_BY_KIND: dict[Kind, type] = {kind: cls for cls, kind in _KIND_BY_TYPE.items()}


# ============================================================
# CLASSIFICATION
# ============================================================

def _marker(raw: dict) -> Optional[tuple[Kind, str]]:
    for kind, names in MARKERS:
        for name in names:
            if name in raw:
                return kind, name
    return None


def classify(descriptor: Any) -> Optional[Kind]:
    """Return the single kind of a descriptor, or None if it is not rich content.

    Raw dicts are classified by which marker keys are present, in fixed
    priority order; values are never inspected.
    """
    kind = _KIND_BY_TYPE.get(type(descriptor))
    if kind is not None:
        return kind
    if isinstance(descriptor, dict):
        found = _marker(descriptor)
        return found[0] if found else None
    return None


detect_type = classify


def parse_descriptor(raw: dict) -> Optional[Descriptor]:
    """Classify a raw descriptor and convert it to its typed form."""
    if not isinstance(raw, dict):
        return None
    found = _marker(raw)
    if found is None:
        return None
    kind, name = found
    body = raw[name]
    if kind is Kind.PAYMENT:
        return PaymentRequest.from_dict(body, sender=raw.get("sender"))
    return _TYPE_BY_KIND[kind].from_dict(body)


def coerce_descriptor(kind: Kind, descriptor: Any) -> Descriptor:
    """Accept either the typed descriptor for ``kind`` or a raw dict carrying its marker."""
    expected = _TYPE_BY_KIND[kind]
    if isinstance(descriptor, expected):
        return descriptor
    if isinstance(descriptor, dict):
        found = _marker(descriptor)
        if found and found[0] is kind:
            return parse_descriptor(descriptor)
    raise MalformedDescriptor(
        f"expected a {expected.__name__} or a raw {kind.value} descriptor", kind=kind, stage="parse"
    )
