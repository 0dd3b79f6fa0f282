"""Message kinds and the order in which their markers are checked."""

from enum import Enum


class Kind(str, Enum):
    PAYMENT = "PAYMENT"
    PRODUCT = "PRODUCT"
    INTERACTIVE = "INTERACTIVE"
    ALBUM = "ALBUM"
    EVENT = "EVENT"
    POLL_RESULT = "POLL_RESULT"
    STATUS_MENTION = "STATUS_MENTION"
    ORDER = "ORDER"
    GROUP_STATUS = "GROUP_STATUS"
    CAROUSEL = "CAROUSEL"


# Priority order is fixed: first marker present wins.
MARKERS: list[tuple[Kind, tuple[str, ...]]] = [
    (Kind.PAYMENT, ("requestPaymentMessage",)),
    (Kind.PRODUCT, ("productMessage",)),
    (Kind.INTERACTIVE, ("interactiveMessage",)),
    (Kind.ALBUM, ("albumMessage",)),
    (Kind.EVENT, ("eventMessage",)),
    (Kind.POLL_RESULT, ("pollResultMessage",)),
    (Kind.STATUS_MENTION, ("statusMentionMessage",)),
    (Kind.ORDER, ("orderMessage",)),
    (Kind.GROUP_STATUS, ("groupStatus",)),
    (Kind.CAROUSEL, ("carouselMessage", "carousel")),
]
