"""Shared pieces for payload builders."""

import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ..collaborators import ContentGenerator, IdGenerator, QuotedMessage, RandomIdGenerator, ThumbnailFetcher
from ..defaults import DefaultsPolicy
from ..media import MediaResolver


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class BuildContext:
    """Everything a builder may need besides its descriptor. One per call."""
    jid: str
    media: MediaResolver
    defaults: DefaultsPolicy = field(default_factory=DefaultsPolicy)
    quoted: Optional[QuotedMessage] = None
    ids: IdGenerator = field(default_factory=RandomIdGenerator)
    thumbnail_fetcher: Optional[ThumbnailFetcher] = None
    content_generator: Optional[ContentGenerator] = None
    clock: Callable[[], int] = now_ms


def compact(data: dict) -> dict:
    """Drop keys whose value is None."""
    return {k: v for k, v in data.items() if v is not None}


def quoted_context(quoted: Optional[QuotedMessage], fallback_participant: Optional[str] = None) -> dict:
    """contextInfo linking a message to the one it quotes."""
    if quoted is None:
        return compact({"participant": fallback_participant})
    return compact({
        "stanzaId": quoted.key.id or None,
        "participant": quoted.key.participant or fallback_participant,
        "quotedMessage": quoted.message or None,
    })


def native_flow_buttons(buttons: list) -> list[dict]:
    """Card buttons as native-flow entries with JSON-encoded params."""
    return [
        {"name": button.name, "buttonParamsJson": json.dumps(button.params or {})}
        for button in buttons
    ]


def view_once(message: dict) -> dict:
    return {"viewOnceMessage": {"message": message}}


def text_block(text: Any) -> dict:
    return {"text": text if text is not None else ""}
