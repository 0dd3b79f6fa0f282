"""Collaborator interfaces and the message data model.

Everything outside the composer (media upload, key assignment, network
delivery, id generation) is reached through the abstract classes below.
Callers inject concrete implementations into ``RelayOrchestrator``; tests
inject recording doubles (see ``wacraft.dryrun``).
"""

import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


# ============================================================
# DATA MODEL
# ============================================================

@dataclass(frozen=True)
class MessageKey:
    """Unique identity of one relayed message. Read-only once assigned."""
    remote_jid: str
    id: str
    from_me: bool = True
    participant: Optional[str] = None

    def to_dict(self) -> dict:
        key = {"remoteJid": self.remote_jid, "id": self.id, "fromMe": self.from_me}
        if self.participant:
            key["participant"] = self.participant
        return key

    @classmethod
    def from_dict(cls, data: dict) -> "MessageKey":
        return cls(
            remote_jid=data.get("remoteJid", ""),
            id=data.get("id", ""),
            from_me=bool(data.get("fromMe", False)),
            participant=data.get("participant"),
        )


@dataclass
class QuotedMessage:
    """A previously delivered message that a new one replies to."""
    key: MessageKey
    message: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "QuotedMessage":
        return cls(key=MessageKey.from_dict(data.get("key") or {}), message=data.get("message") or {})


@dataclass
class MaterializedMessage:
    key: MessageKey
    message: dict


@dataclass
class MaterializeOptions:
    quoted: Optional[QuotedMessage] = None
    user_jid: Optional[str] = None


@dataclass
class RelayOptions:
    message_id: Optional[str] = None
    quoted: Optional[QuotedMessage] = None


@dataclass
class RelayEnvelope:
    """One relay call: destination, payload and options. Ephemeral."""
    jid: str
    payload: dict
    options: RelayOptions


@dataclass
class SendResult:
    """What every ``handle_*`` entry point returns.

    ``children`` is only populated for albums (one entry per relayed item,
    in input order). ``relay_result`` is whatever the transport returned for
    the top-level message.
    """
    kind: str
    key: Optional[MessageKey]
    message: dict
    relay_result: Any = None
    children: list[MaterializedMessage] = field(default_factory=list)
    media: Optional[Any] = None  # Resolved media not embedded in the payload (status mention)


# ============================================================
# COLLABORATORS
# ============================================================

class Uploader(ABC):
    """Turns ``{"image": bytes | {"url": ...}}`` into ``{"imageMessage": {...}}``."""

    @abstractmethod
    async def upload(self, media: dict) -> dict:
        ...


class Materializer(ABC):
    """Stamps a unique key on a payload tree and resolves quoted linkage."""

    @abstractmethod
    async def materialize(self, jid: str, payload: dict, options: MaterializeOptions) -> MaterializedMessage:
        ...


class RelayTransport(ABC):
    """Opaque network delivery. Retries, if any, live here."""

    @abstractmethod
    async def relay(self, jid: str, message: dict, options: RelayOptions) -> Any:
        ...


class IdGenerator(ABC):
    @abstractmethod
    def generate(self) -> str:
        ...

    def user_jid(self) -> str:
        """A throwaway user jid derived from a fresh id."""
        return self.generate().split("@")[0] + "@s.whatsapp.net"


class ContentGenerator(ABC):
    """Derives a message tree from generic content (group stories)."""

    @abstractmethod
    async def generate(self, content: dict) -> dict:
        ...


class ThumbnailFetcher(ABC):
    @abstractmethod
    async def fetch(self, url: str) -> bytes:
        ...


class RandomIdGenerator(IdGenerator):
    """Message ids in the usual ``3EB0`` + hex form."""

    def __init__(self, prefix: str = "3EB0", length: int = 18):
        self._prefix = prefix
        self._length = length

    def generate(self) -> str:
        return self._prefix + secrets.token_hex(self._length // 2 + 1)[: self._length].upper()


def message_secret() -> bytes:
    """32 random bytes for ``messageContextInfo.messageSecret``."""
    return secrets.token_bytes(32)
