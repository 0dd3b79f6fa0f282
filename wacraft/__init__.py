"""wacraft — rich content composition for WhatsApp-protocol clients."""

__version__ = "0.1.0"

from .collaborators import (  # noqa: E402
    ContentGenerator,
    IdGenerator,
    MaterializedMessage,
    MaterializeOptions,
    Materializer,
    MessageKey,
    QuotedMessage,
    RandomIdGenerator,
    RelayEnvelope,
    RelayOptions,
    RelayTransport,
    SendResult,
    ThumbnailFetcher,
    Uploader,
)
from .descriptors import classify, detect_type, parse_descriptor  # noqa: E402
from .errors import (  # noqa: E402
    ComposerError,
    MalformedDescriptor,
    MediaUploadError,
    MissingCollaboratorError,
    RelayError,
    SequenceFailure,
)
from .kinds import Kind  # noqa: E402
from .relay import RelayOrchestrator  # noqa: E402

__all__ = [
    "__version__",
    # Entry point
    "RelayOrchestrator",
    "Kind",
    "classify",
    "detect_type",
    "parse_descriptor",
    # Collaborators
    "Uploader",
    "Materializer",
    "RelayTransport",
    "IdGenerator",
    "RandomIdGenerator",
    "ContentGenerator",
    "ThumbnailFetcher",
    # Data model
    "MessageKey",
    "QuotedMessage",
    "MaterializedMessage",
    "MaterializeOptions",
    "RelayOptions",
    "RelayEnvelope",
    "SendResult",
    # Errors
    "ComposerError",
    "MalformedDescriptor",
    "MediaUploadError",
    "MissingCollaboratorError",
    "RelayError",
    "SequenceFailure",
]
