"""In-memory collaborators that never touch the network.

Used by ``wacraft preview`` and by the test suite. Every call is appended
to a shared ``journal`` as ``(collaborator, detail)`` so call order across
collaborators can be inspected.
"""

import hashlib
from typing import Any, Optional

from .collaborators import (
    ContentGenerator,
    IdGenerator,
    MaterializedMessage,
    MaterializeOptions,
    Materializer,
    MessageKey,
    RelayEnvelope,
    RelayOptions,
    RelayTransport,
    Uploader,
)

_MIMETYPES = {"image": "image/jpeg", "video": "video/mp4", "document": "application/octet-stream"}


class SequentialIds(IdGenerator):
    """Predictable ids: DRYRUN0001, DRYRUN0002, ..."""

    def __init__(self, prefix: str = "DRYRUN"):
        self._prefix = prefix
        self._counter = 0

    def generate(self) -> str:
        self._counter += 1
        return f"{self._prefix}{self._counter:04d}"


class DryRunUploader(Uploader):
    """Pretends to upload; the handle's url is derived from the media itself."""

    def __init__(self, journal: Optional[list] = None):
        self.journal = journal if journal is not None else []
        self.requests: list[dict] = []

    async def upload(self, media: dict) -> dict:
        self.requests.append(media)
        media_kind = next(k for k in ("image", "video", "document") if k in media)
        source = media[media_kind]
        if isinstance(source, dict) and "url" in source:
            digest_input = str(source["url"]).encode()
            url = source["url"]
        else:
            digest_input = bytes(source) if isinstance(source, (bytes, bytearray)) else repr(source).encode()
            url = None
        digest = hashlib.sha256(digest_input).hexdigest()
        self.journal.append(("upload", media_kind))
        return {
            f"{media_kind}Message": {
                "url": url or f"https://mmg.example.invalid/{digest[:16]}",
                "mimetype": _MIMETYPES[media_kind],
                "fileSha256": digest,
            }
        }


class DryRunMaterializer(Materializer):
    def __init__(self, ids: IdGenerator, journal: Optional[list] = None):
        self._ids = ids
        self.journal = journal if journal is not None else []

    async def materialize(self, jid: str, payload: dict, options: MaterializeOptions) -> MaterializedMessage:
        key = MessageKey(remote_jid=jid, id=self._ids.generate(), from_me=True)
        message = dict(payload)
        if options.quoted is not None:
            message["quotedStanzaId"] = options.quoted.key.id
        self.journal.append(("materialize", key.id))
        return MaterializedMessage(key=key, message=message)


class RecordingTransport(RelayTransport):
    """Records every relay as a ``RelayEnvelope``."""

    def __init__(self, journal: Optional[list] = None):
        self.journal = journal if journal is not None else []
        self.envelopes: list[RelayEnvelope] = []

    async def relay(self, jid: str, message: dict, options: RelayOptions) -> Any:
        self.envelopes.append(RelayEnvelope(jid=jid, payload=message, options=options))
        self.journal.append(("relay", options.message_id))
        return {"status": "queued", "messageId": options.message_id}


class PassthroughContentGenerator(ContentGenerator):
    """Wraps generic content as ``{"message": content}``."""

    async def generate(self, content: dict) -> dict:
        return {"message": dict(content)}
