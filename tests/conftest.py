"""Pytest configuration and shared fixtures."""

import pytest

from wacraft.dryrun import (
    DryRunMaterializer,
    DryRunUploader,
    PassthroughContentGenerator,
    RecordingTransport,
    SequentialIds,
)
from wacraft.relay import RelayOrchestrator

JID = "628123456789@s.whatsapp.net"
FIXED_NOW = 1_700_000_000_000


@pytest.fixture
def journal():
    """Shared call log: (collaborator, detail) tuples in call order."""
    return []


@pytest.fixture
def ids():
    return SequentialIds()


@pytest.fixture
def uploader(journal):
    return DryRunUploader(journal)


@pytest.fixture
def materializer(ids, journal):
    return DryRunMaterializer(ids, journal)


@pytest.fixture
def transport(journal):
    return RecordingTransport(journal)


@pytest.fixture
def orchestrator(uploader, materializer, transport, ids):
    return RelayOrchestrator(
        uploader,
        materializer,
        transport,
        ids,
        content_generator=PassthroughContentGenerator(),
        clock=lambda: FIXED_NOW,
    )
