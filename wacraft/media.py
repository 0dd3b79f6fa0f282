"""Media resolution: turn media references into uploaded handles.

A media reference is raw bytes, a stream, a URL string, or any object
carrying a ``url`` (dict key or attribute). Resolution never touches the
caller's descriptor; it builds a fresh upload request and wraps the
uploader's answer in ``UploadedMedia``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .collaborators import ThumbnailFetcher, Uploader
from .errors import MediaUploadError

logger = logging.getLogger("wacraft.media")

MEDIA_KINDS = ("image", "video", "document")


@dataclass
class UploadedMedia:
    media_kind: str
    message: dict          # e.g. the contents of "imageMessage"

    @property
    def field_name(self) -> str:
        return f"{self.media_kind}Message"

    def to_payload(self) -> dict:
        return {self.field_name: self.message}


def media_url(reference: Any) -> Optional[str]:
    """Return the URL a reference points at, or None for raw media."""
    if isinstance(reference, str):
        return reference
    if isinstance(reference, dict):
        url = reference.get("url")
    else:
        url = getattr(reference, "url", None)
    return url if isinstance(url, str) and url else None


def _normalize(reference: Any) -> Any:
    url = media_url(reference)
    if url is not None:
        return {"url": url}
    return reference


class MediaResolver:
    """Resolves media references through an injected uploader."""

    def __init__(self, uploader: Uploader):
        self._uploader = uploader

    async def _upload(self, request: dict, media_kind: str) -> UploadedMedia:
        try:
            handle = await self._uploader.upload(request)
        except MediaUploadError:
            raise
        except Exception as e:
            raise MediaUploadError(f"{media_kind} upload failed: {e}", media_kind=media_kind, stage="upload") from e

        field_name = f"{media_kind}Message"
        message = handle.get(field_name) if isinstance(handle, dict) else None
        if not isinstance(message, dict):
            raise MediaUploadError(
                f"uploader returned no {field_name}", media_kind=media_kind, stage="upload"
            )
        return UploadedMedia(media_kind=media_kind, message=dict(message))

    async def resolve(self, reference: Any, media_kind: str) -> UploadedMedia:
        """Upload one media reference as ``media_kind`` (image, video or document)."""
        if media_kind not in MEDIA_KINDS:
            raise ValueError(f"Unknown media kind: {media_kind}")
        if reference is None:
            raise MediaUploadError(f"no {media_kind} to upload", media_kind=media_kind, stage="upload")
        return await self._upload({media_kind: _normalize(reference)}, media_kind)

    async def resolve_document(
        self,
        reference: Any,
        thumbnail: Any = None,
        file_name: Optional[str] = None,
        mimetype: Optional[str] = None,
    ) -> UploadedMedia:
        """Upload a document, then override fileName/mimetype on the handle.

        The upload request itself carries no filename or mimetype intent.
        """
        if reference is None:
            raise MediaUploadError("no document to upload", media_kind="document", stage="upload")
        request = {"document": _normalize(reference)}
        if thumbnail:
            request["jpegThumbnail"] = _normalize(thumbnail)

        media = await self._upload(request, "document")
        if file_name:
            media.message["fileName"] = file_name
        if mimetype:
            media.message["mimetype"] = mimetype
        return media


class HttpThumbnailFetcher(ThumbnailFetcher):
    """Downloads remote thumbnails over HTTP."""

    def __init__(
        self,
        timeout: float = 15.0,
        max_bytes: int = 5 * 1024 * 1024,
        user_agent: str = "Mozilla/5.0 (compatible; wacraft/0.1)",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._timeout = timeout
        self._max_bytes = max_bytes
        self._user_agent = user_agent
        self._transport = transport

    @classmethod
    def from_settings(cls, settings) -> "HttpThumbnailFetcher":
        return cls(
            timeout=settings.thumbnail_timeout,
            max_bytes=settings.thumbnail_max_bytes,
            user_agent=settings.user_agent,
        )

    async def fetch(self, url: str) -> bytes:
        if not url.startswith(("http://", "https://")):
            raise MediaUploadError(f"thumbnail URL must be http(s): {url}", media_kind="image", stage="fetch")

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                headers={"User-Agent": self._user_agent, "Accept": "image/*"},
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise MediaUploadError(f"thumbnail fetch failed: {e}", media_kind="image", stage="fetch") from e

        data = response.content
        if len(data) > self._max_bytes:
            raise MediaUploadError(
                f"thumbnail too large ({len(data)} bytes)", media_kind="image", stage="fetch"
            )
        logger.debug(f"Fetched thumbnail {url} ({len(data)} bytes)")
        return data
