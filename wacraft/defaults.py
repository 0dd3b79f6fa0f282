"""Fallback literals for optional descriptor fields, per message kind.

Builders never hard-code a placeholder; they ask the policy. The table is
plain data so configuration (``WacraftSettings``) can override entries.
"""

import copy
from typing import Any, Optional

from .kinds import Kind

_PLACEHOLDER_JID = "0@s.whatsapp.net"

DEFAULTS: dict[Kind, dict[str, Any]] = {
    Kind.PAYMENT: {
        "amount": 0,
        "currency": "IDR",
        "expiry": 0,
        "request_from": _PLACEHOLDER_JID,
        "background": {"id": "DEFAULT", "placeholderArgb": 0xFFF0F0F0},
    },
    Kind.PRODUCT: {
        "currency_code": "IDR",
        "business_owner_jid": _PLACEHOLDER_JID,
    },
    Kind.CAROUSEL: {
        "product_id": "123456",
        "currency_code": "IDR",
        "price_amount1000": "100000",
        "retailer_id": "Retailer",
        "business_owner_jid": _PLACEHOLDER_JID,
    },
    Kind.EVENT: {
        "location": {"degreesLatitude": 0, "degreesLongitude": 0, "name": "Location"},
        "duration_ms": 3_600_000,
    },
    Kind.POLL_RESULT: {
        "newsletter_name": "Newsletter",
        "newsletter_jid": "0@newsletter",
    },
    Kind.ORDER: {
        "order_id": "ORDER000000000",
        "token": "ORDER_TOKEN",
        "seller_jid": _PLACEHOLDER_JID,
        "currency": "IDR",
    },
}


class DefaultsPolicy:
    """Read-only view over a defaults table."""

    def __init__(self, table: Optional[dict[Kind, dict[str, Any]]] = None):
        self._table = copy.deepcopy(table if table is not None else DEFAULTS)

    def get(self, kind: Kind, field: str) -> Any:
        """Return a fresh copy of the fallback for ``kind``/``field``.

        Raises KeyError for unknown entries so a typo never becomes a silent None.
        """
        return copy.deepcopy(self._table[kind][field])

    def or_default(self, kind: Kind, field: str, value: Any) -> Any:
        """``value`` unless it is None, else the fallback."""
        return self.get(kind, field) if value is None else value

    def with_overrides(self, overrides: dict[Kind, dict[str, Any]]) -> "DefaultsPolicy":
        table = copy.deepcopy(self._table)
        for kind, fields in overrides.items():
            table.setdefault(kind, {}).update(fields)
        return DefaultsPolicy(table)

    @classmethod
    def from_settings(cls, settings) -> "DefaultsPolicy":
        """Build the policy with placeholders taken from ``WacraftSettings``."""
        currency = settings.default_currency
        return cls().with_overrides({
            Kind.PAYMENT: {"currency": currency, "request_from": settings.request_from_jid},
            Kind.PRODUCT: {"currency_code": currency, "business_owner_jid": settings.business_owner_jid},
            Kind.CAROUSEL: {"currency_code": currency, "business_owner_jid": settings.business_owner_jid},
            Kind.POLL_RESULT: {
                "newsletter_name": settings.newsletter_name,
                "newsletter_jid": settings.newsletter_jid,
            },
            Kind.ORDER: {
                "order_id": settings.order_id,
                "token": settings.order_token,
                "seller_jid": settings.seller_jid,
                "currency": currency,
            },
        })
