"""Composer exception hierarchy and log-friendly error rendering."""

import asyncio
from typing import Optional

import httpx


# ════════════════════════════════════════════════════════
# Composer Exception Hierarchy: classify failures by type,
# not by string matching. Every error can carry the kind,
# destination jid and pipeline stage it failed in.
# ════════════════════════════════════════════════════════

class ComposerError(Exception):
    """Base class for all composition and relay errors."""

    def __init__(
        self,
        message: str,
        *,
        kind: Optional[str] = None,
        jid: Optional[str] = None,
        stage: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = getattr(kind, "value", kind)
        self.jid = jid
        self.stage = stage

    def with_context(self, *, kind=None, jid=None, stage=None) -> "ComposerError":
        """Fill in context fields that are still unset. Returns self."""
        if self.kind is None and kind is not None:
            self.kind = getattr(kind, "value", kind)
        if self.jid is None:
            self.jid = jid
        if self.stage is None:
            self.stage = stage
        return self

    def context(self) -> str:
        parts = []
        if self.kind:
            parts.append(f"kind={self.kind}")
        if self.jid:
            parts.append(f"jid={self.jid}")
        if self.stage:
            parts.append(f"stage={self.stage}")
        return " ".join(parts)


class MalformedDescriptor(ComposerError):
    """Required kind-specific fields are absent or have the wrong type."""
    pass


class MediaUploadError(ComposerError):
    """The uploader (or thumbnail fetch) failed to produce a media handle."""

    def __init__(self, message: str, *, media_kind: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.media_kind = media_kind


class RelayError(ComposerError):
    """Materialization or transport delivery of a single message failed."""
    pass


class SequenceFailure(ComposerError):
    """A child relay failed after the parent of a composite sequence was delivered.

    The parent and any children in ``delivered`` stay delivered; nothing is
    rolled back. ``index`` is the position of the failing child.
    """

    def __init__(
        self,
        message: str,
        *,
        parent_key=None,
        index: int = 0,
        delivered: Optional[list] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.parent_key = parent_key
        self.index = index
        self.delivered = delivered or []


class MissingCollaboratorError(ComposerError):
    """An optional collaborator needed by this kind was not injected."""
    pass


def describe_error(e: BaseException) -> str:
    """Render any exception raised while composing into a one-line summary.

    Used for logging and by the CLI. Composer errors include their
    kind/jid/stage context; transport-level errors are named by category.
    """
    if isinstance(e, SequenceFailure):
        return (
            f"Album child #{e.index} failed after parent was delivered "
            f"({len(e.delivered)} children delivered): {e} [{e.context()}]"
        )
    if isinstance(e, MediaUploadError):
        media = f" {e.media_kind}" if e.media_kind else ""
        return f"Media upload failed{media}: {e} [{e.context()}]"
    if isinstance(e, MalformedDescriptor):
        return f"Malformed descriptor: {e} [{e.context()}]"
    if isinstance(e, MissingCollaboratorError):
        return f"Missing collaborator: {e} [{e.context()}]"
    if isinstance(e, RelayError):
        return f"Relay failed: {e} [{e.context()}]"
    if isinstance(e, ComposerError):
        return f"{e} [{e.context()}]"

    if isinstance(e, httpx.HTTPStatusError):
        return f"HTTP {e.response.status_code} from {e.request.url}"
    if isinstance(e, httpx.ConnectError):
        return "Cannot connect to remote media host."
    if isinstance(e, (httpx.TimeoutException, asyncio.TimeoutError)):
        return "Request timed out."

    type_name = type(e).__name__
    return f"Unexpected error ({type_name}): {e}"
