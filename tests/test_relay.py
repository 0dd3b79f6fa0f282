"""Tests for RelayOrchestrator: strategies, ordering and error propagation."""

import pytest
from unittest.mock import AsyncMock

from wacraft.collaborators import RelayTransport
from wacraft.descriptors import PollResult, PollVote
from wacraft.dryrun import DryRunMaterializer
from wacraft.errors import (
    MalformedDescriptor,
    MediaUploadError,
    MissingCollaboratorError,
    RelayError,
    SequenceFailure,
)
from wacraft.kinds import Kind
from wacraft.relay import RelayOrchestrator
from wacraft.strategies import ExecutionStrategy, join_all, ordered_chain, strategy_for

JID = "628123456789@s.whatsapp.net"
FIXED_NOW = 1_700_000_000_000

ALBUM = {"albumMessage": [
    {"image": {"url": "https://e/1.jpg"}, "caption": "first"},
    {"video": {"url": "https://e/2.mp4"}},
    {"image": {"url": "https://e/3.jpg"}},
]}


class _FailOnNthRelay(RelayTransport):
    def __init__(self, fail_at: int, journal: list):
        self._fail_at = fail_at
        self._count = 0
        self.journal = journal

    async def relay(self, jid, message, options):
        self._count += 1
        if self._count == self._fail_at:
            raise ConnectionError("socket closed")
        self.journal.append(("relay", options.message_id))
        return {"ok": True}


# ── Single-message kinds ────────────────────────────────────

class TestSingleRelay:

    @pytest.mark.asyncio
    async def test_materialize_then_relay_once(self, orchestrator, transport, journal):
        result = await orchestrator.handle_event(JID, {"eventMessage": {"name": "Standup"}})

        assert result.kind == "EVENT"
        assert [step for step, _ in journal] == ["materialize", "relay"]
        assert len(transport.envelopes) == 1
        envelope = transport.envelopes[0]
        assert envelope.jid == JID
        assert envelope.options.message_id == result.key.id
        ev = envelope.payload["viewOnceMessage"]["message"]["eventMessage"]
        assert ev["startTime"] == FIXED_NOW

    @pytest.mark.asyncio
    async def test_quoted_dict_reaches_materializer(self, orchestrator):
        quoted = {"key": {"remoteJid": JID, "id": "Q9", "fromMe": False}, "message": {"conversation": "hi"}}
        result = await orchestrator.handle_payment(JID, {"requestPaymentMessage": {"note": "n"}}, quoted)
        assert result.message["quotedStanzaId"] == "Q9"
        note = result.message["requestPaymentMessage"]["noteMessage"]["extendedTextMessage"]
        assert note["contextInfo"]["stanzaId"] == "Q9"

    @pytest.mark.asyncio
    async def test_typed_descriptor(self, orchestrator, transport):
        poll = PollResult(name="Lunch", votes=[PollVote("A", 3)])
        result = await orchestrator.handle_poll_result(JID, poll)
        votes = result.message["pollResultSnapshotMessage"]["pollVotes"]
        assert votes == [{"optionName": "A", "optionVoteCount": "3"}]
        assert len(transport.envelopes) == 1

    @pytest.mark.asyncio
    async def test_poll_result_gets_user_jid(self, uploader, transport, ids):
        materializer = AsyncMock()
        materializer.materialize = AsyncMock(side_effect=DryRunMaterializer(ids).materialize)
        orchestrator = RelayOrchestrator(uploader, materializer, transport, ids)

        await orchestrator.handle_poll_result(JID, {"pollResultMessage": {
            "name": "p", "pollVotes": [{"optionName": "A", "optionVoteCount": 1}],
        }})
        options = materializer.materialize.await_args.args[2]
        assert options.user_jid.endswith("@s.whatsapp.net")

    @pytest.mark.asyncio
    async def test_interactive_single_upload(self, orchestrator, uploader):
        await orchestrator.handle_interactive(JID, {"interactiveMessage": {
            "thumbnail": "https://e/t.jpg", "image": {"url": "https://e/i.jpg"},
        }})
        assert uploader.requests == [{"image": {"url": "https://e/t.jpg"}}]

    @pytest.mark.asyncio
    async def test_carousel_relays_once(self, orchestrator, transport, journal):
        await orchestrator.handle_carousel(JID, {"carousel": {"cards": [
            {"headerTitle": "a", "imageUrl": "https://e/a.jpg"},
            {"headerTitle": "b", "imageUrl": "https://e/b.jpg"},
        ]}})
        steps = [step for step, _ in journal]
        assert steps.count("upload") == 2
        assert steps[-2:] == ["materialize", "relay"]
        assert len(transport.envelopes) == 1

    @pytest.mark.asyncio
    async def test_order_with_failing_thumbnail_still_relays(self, uploader, materializer, transport, ids):
        fetcher = AsyncMock()
        fetcher.fetch = AsyncMock(side_effect=MediaUploadError("unreachable"))
        orchestrator = RelayOrchestrator(uploader, materializer, transport, ids, thumbnail_fetcher=fetcher)

        result = await orchestrator.handle_order_message(JID, {"orderMessage": {
            "thumbnail": "https://e/t.jpg", "itemCount": 3, "orderTitle": "Snacks",
        }})
        assert "thumbnail" not in result.message["orderMessage"]
        assert len(transport.envelopes) == 1
        assert transport.envelopes[0].options.message_id == result.key.id

    @pytest.mark.asyncio
    async def test_order_with_url_object_thumbnail(self, uploader, materializer, transport, ids):
        fetcher = AsyncMock()
        fetcher.fetch = AsyncMock(return_value=b"\xff\xd8thumb")
        orchestrator = RelayOrchestrator(uploader, materializer, transport, ids, thumbnail_fetcher=fetcher)

        result = await orchestrator.handle_order_message(JID, {"orderMessage": {
            "thumbnail": {"url": "https://e/t.jpg"}, "itemCount": 1,
        }})
        fetcher.fetch.assert_awaited_once_with("https://e/t.jpg")
        assert result.message["orderMessage"]["thumbnail"] == b"\xff\xd8thumb"
        assert len(transport.envelopes) == 1

    @pytest.mark.asyncio
    async def test_status_mention_is_partial(self, orchestrator, transport, caplog):
        with caplog.at_level("WARNING", logger="wacraft.builders.status_mention"):
            result = await orchestrator.handle_status_mention(JID, {"statusMentionMessage": {"image": b"\xff"}})
        assert result.message["statusMentionMessage"]["message"]["protocolMessage"]["type"] == 15
        assert result.media is not None
        assert result.media.media_kind == "image"
        assert "not implemented" in caplog.text
        assert len(transport.envelopes) == 1


# ── Album (ordered chain) ───────────────────────────────────

class TestAlbum:

    @pytest.mark.asyncio
    async def test_parent_relayed_before_any_child(self, orchestrator, journal):
        result = await orchestrator.handle_album(JID, ALBUM)

        steps = [step for step, _ in journal]
        first_relay = steps.index("relay")
        # parent: materialize, relay; then per child: upload, materialize, relay
        assert steps[:first_relay + 1] == ["materialize", "relay"]
        assert steps[first_relay + 1:] == ["upload", "materialize", "relay"] * 3
        assert journal[first_relay][1] == result.key.id

    @pytest.mark.asyncio
    async def test_children_reference_parent(self, orchestrator, transport):
        result = await orchestrator.handle_album(JID, ALBUM)

        parent_env, *child_envs = transport.envelopes
        assert parent_env.payload["albumMessage"] == {"expectedImageCount": 2, "expectedVideoCount": 1}
        assert len(child_envs) == 3
        for env in child_envs:
            assoc = env.payload["messageContextInfo"]["messageAssociation"]
            assert assoc["parentMessageKey"] == result.key.to_dict()
            assert env.options.quoted.key.id == result.key.id
            assert env.options.quoted.key.from_me is True
            assert env.options.quoted.message == result.message

    @pytest.mark.asyncio
    async def test_children_in_input_order(self, orchestrator, transport):
        result = await orchestrator.handle_album(JID, ALBUM)

        assert [c.key.id for c in result.children] == [e.options.message_id for e in transport.envelopes[1:]]
        first, second, third = (e.payload for e in transport.envelopes[1:])
        assert first["imageMessage"]["url"] == "https://e/1.jpg"
        assert first["imageMessage"]["caption"] == "first"
        assert second["videoMessage"]["url"] == "https://e/2.mp4"
        assert third["imageMessage"]["url"] == "https://e/3.jpg"

    @pytest.mark.asyncio
    async def test_child_failure_is_sequence_failure(self, uploader, ids, journal):
        transport = _FailOnNthRelay(fail_at=3, journal=journal)
        orchestrator = RelayOrchestrator(uploader, DryRunMaterializer(ids, journal), transport, ids)

        with pytest.raises(SequenceFailure) as exc_info:
            await orchestrator.handle_album(JID, ALBUM)

        err = exc_info.value
        assert err.index == 1
        assert len(err.delivered) == 1
        assert err.parent_key is not None
        assert err.kind == "ALBUM"
        assert err.jid == JID
        # parent + first child went out; the third item was never attempted
        assert [step for step, _ in journal].count("relay") == 2
        assert [step for step, _ in journal].count("upload") == 2

    @pytest.mark.asyncio
    async def test_parent_failure_is_relay_error(self, uploader, ids, journal):
        transport = _FailOnNthRelay(fail_at=1, journal=journal)
        orchestrator = RelayOrchestrator(uploader, DryRunMaterializer(ids, journal), transport, ids)

        with pytest.raises(RelayError) as exc_info:
            await orchestrator.handle_album(JID, ALBUM)
        assert not isinstance(exc_info.value, SequenceFailure)
        assert exc_info.value.stage == "relay"
        assert exc_info.value.kind == "ALBUM"
        assert "upload" not in [step for step, _ in journal]

    @pytest.mark.asyncio
    async def test_child_upload_failure(self, materializer, transport, ids):
        uploader = AsyncMock()
        uploader.upload = AsyncMock(side_effect=OSError("disk"))
        orchestrator = RelayOrchestrator(uploader, materializer, transport, ids)

        with pytest.raises(SequenceFailure) as exc_info:
            await orchestrator.handle_album(JID, ALBUM)
        assert exc_info.value.index == 0
        assert exc_info.value.stage == "upload"
        assert len(transport.envelopes) == 1  # parent only


# ── Group story (direct) ────────────────────────────────────

class TestGroupStory:

    @pytest.mark.asyncio
    async def test_no_materialize(self, orchestrator, transport, journal):
        result = await orchestrator.handle_group_story(JID, {"groupStatus": {"message": {"conversation": "hey"}}})

        assert [step for step, _ in journal] == ["relay"]
        assert transport.envelopes[0].payload == {"groupStatusMessageV2": {"message": {"conversation": "hey"}}}
        assert result.key.id == transport.envelopes[0].options.message_id
        assert result.relay_result == {"status": "queued", "messageId": result.key.id}

    @pytest.mark.asyncio
    async def test_generated_content(self, orchestrator, transport):
        await orchestrator.handle_group_story(JID, {"groupStatus": {"text": "hey"}})
        assert transport.envelopes[0].payload == {"groupStatusMessageV2": {"message": {"text": "hey"}}}

    @pytest.mark.asyncio
    async def test_missing_generator(self, uploader, materializer, transport, ids):
        orchestrator = RelayOrchestrator(uploader, materializer, transport, ids)
        with pytest.raises(MissingCollaboratorError) as exc_info:
            await orchestrator.handle_group_story(JID, {"groupStatus": {"text": "hey"}})
        assert exc_info.value.jid == JID
        assert transport.envelopes == []


# ── Dispatch and validation ─────────────────────────────────

class TestSendAndValidation:

    @pytest.mark.asyncio
    async def test_send_classifies(self, orchestrator):
        result = await orchestrator.send(JID, {"orderMessage": {"itemCount": 1}})
        assert result.kind == "ORDER"

    @pytest.mark.asyncio
    async def test_send_not_rich_content(self, orchestrator, journal):
        assert await orchestrator.send(JID, {"text": "plain"}) is None
        assert journal == []

    def test_detect_type(self, orchestrator):
        assert orchestrator.detect_type({"carouselMessage": {}}) is Kind.CAROUSEL

    @pytest.mark.asyncio
    async def test_malformed_before_any_collaborator(self, orchestrator, journal):
        with pytest.raises(MalformedDescriptor) as exc_info:
            await orchestrator.handle_poll_result(JID, {"pollResultMessage": {
                "name": "p", "pollVotes": [{"optionVoteCount": 1}],
            }})
        assert journal == []
        assert exc_info.value.jid == JID
        assert exc_info.value.kind == "POLL_RESULT"

    @pytest.mark.asyncio
    async def test_nested_non_object_is_malformed(self, orchestrator, journal):
        with pytest.raises(MalformedDescriptor) as exc_info:
            await orchestrator.handle_carousel(JID, {"carousel": {"cards": [{"buttons": ["buy"]}]}})
        assert exc_info.value.jid == JID
        assert exc_info.value.kind == "CAROUSEL"

        with pytest.raises(MalformedDescriptor) as exc_info:
            await orchestrator.handle_poll_result(JID, {"pollResultMessage": {
                "name": "p", "pollVotes": [{"optionName": "A", "optionVoteCount": 1}], "newsletter": "x",
            }})
        assert exc_info.value.stage == "parse"
        assert journal == []

    @pytest.mark.asyncio
    async def test_float_vote_count_relayed(self, orchestrator, transport):
        result = await orchestrator.handle_poll_result(JID, {"pollResultMessage": {
            "name": "p", "pollVotes": [{"optionName": "A", "optionVoteCount": 3.0}],
        }})
        assert result.message["pollResultSnapshotMessage"]["pollVotes"][0]["optionVoteCount"] == "3"
        assert len(transport.envelopes) == 1

    @pytest.mark.asyncio
    async def test_wrong_kind_for_handler(self, orchestrator):
        with pytest.raises(MalformedDescriptor):
            await orchestrator.handle_product(JID, {"orderMessage": {}})

    @pytest.mark.asyncio
    async def test_upload_error_propagates_with_context(self, materializer, transport, ids):
        uploader = AsyncMock()
        uploader.upload = AsyncMock(side_effect=TimeoutError())
        orchestrator = RelayOrchestrator(uploader, materializer, transport, ids)

        with pytest.raises(MediaUploadError) as exc_info:
            await orchestrator.handle_product(JID, {"productMessage": {"title": "x", "thumbnail": b"\xff"}})
        assert exc_info.value.kind == "PRODUCT"
        assert exc_info.value.jid == JID
        assert exc_info.value.stage == "upload"
        assert transport.envelopes == []

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self, uploader, materializer, ids):
        transport = AsyncMock()
        transport.relay = AsyncMock(side_effect=ConnectionError("down"))
        orchestrator = RelayOrchestrator(uploader, materializer, transport, ids)

        with pytest.raises(RelayError) as exc_info:
            await orchestrator.handle_event(JID, {"eventMessage": {"name": "x"}})
        assert exc_info.value.stage == "relay"
        assert isinstance(exc_info.value.__cause__, ConnectionError)


# ── Strategies ──────────────────────────────────────────────

class TestStrategies:

    def test_named_strategy_per_kind(self):
        assert strategy_for(Kind.CAROUSEL) is ExecutionStrategy.JOIN_ALL
        assert strategy_for(Kind.ALBUM) is ExecutionStrategy.ORDERED_CHAIN
        assert strategy_for(Kind.GROUP_STATUS) is ExecutionStrategy.DIRECT
        assert strategy_for(Kind.PAYMENT) is ExecutionStrategy.SINGLE

    @pytest.mark.asyncio
    async def test_join_all_raises_earliest_failure(self):
        async def step(i):
            if i in (1, 2):
                raise ValueError(f"bad {i}")
            return i

        with pytest.raises(ValueError, match="bad 1"):
            await join_all([0, 1, 2, 3], step)

    @pytest.mark.asyncio
    async def test_ordered_chain_stops(self):
        seen = []

        async def step(index, item):
            seen.append(item)
            if item == "b":
                raise RuntimeError("stop")
            return item

        with pytest.raises(RuntimeError):
            await ordered_chain(["a", "b", "c"], step)
        assert seen == ["a", "b"]
