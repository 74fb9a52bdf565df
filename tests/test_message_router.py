"""Tests for inbound message recording and auto-reply matching."""

import pytest

from services.realtime.message_router import PING_REPLY, InboundMessageRouter
from services.transport.base import APPEND, NOTIFY, MessageBatch, TransportMessage


def _message(text=None, sender="123", from_me=False, content=None):
    return TransportMessage(sender_id=sender, from_me=from_me, content=content or {"conversation": text})


@pytest.fixture
def transport(transport_factory, tmp_path):
    return transport_factory(tmp_path / "auth", listener=None)


class TestRecording:
    @pytest.mark.asyncio
    async def test_records_and_publishes_message(self, message_router: InboundMessageRouter, transport, runtime):
        await message_router.handle_batch(MessageBatch(kind=NOTIFY, messages=[_message("hello")]), transport)

        record = runtime.messages.to_list()[0]
        assert (record.sender_id, record.text, record.is_self_originated) == ("123", "hello", False)
        assert runtime.events.to_list()[0].category == "message"
        assert runtime.events.to_list()[0].payload["from"] == "123"

    @pytest.mark.asyncio
    async def test_backfill_batches_are_ignored(self, message_router, transport, runtime):
        await message_router.handle_batch(MessageBatch(kind=APPEND, messages=[_message("ping")]), transport)

        assert len(runtime.messages) == 0
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_messages_without_text_are_dropped(self, message_router, transport, runtime):
        batch = MessageBatch(
            kind=NOTIFY,
            messages=[
                _message(content={"stickerMessage": {}}),
                TransportMessage(sender_id="123", content=None),
                TransportMessage(sender_id=None, content={"conversation": "hi"}),
            ],
        )

        await message_router.handle_batch(batch, transport)

        assert len(runtime.messages) == 0
        assert len(runtime.events) == 0

    @pytest.mark.asyncio
    async def test_message_history_is_bounded(self, message_router, transport, runtime):
        messages = [_message(f"m{i}") for i in range(60)]

        await message_router.handle_batch(MessageBatch(kind=NOTIFY, messages=messages), transport)

        assert len(runtime.messages) == 50
        assert runtime.messages.to_list()[0].text == "m59"

    @pytest.mark.asyncio
    async def test_self_messages_recorded_but_never_answered(self, message_router, transport, runtime):
        await message_router.handle_message(_message("ping", from_me=True), transport)

        assert runtime.messages.to_list()[0].is_self_originated is True
        assert transport.sent == []


class TestAutoReply:
    @pytest.mark.asyncio
    async def test_ping_any_case_gets_acknowledgement(self, message_router, transport):
        reply = await message_router.handle_message(_message("  PiNg "), transport)

        assert reply == PING_REPLY
        assert transport.sent == [("123", PING_REPLY)]

    @pytest.mark.asyncio
    async def test_persisted_ping_command_never_fires(self, message_router, registry, transport):
        await registry.create("ping", "custom")

        await message_router.handle_message(_message("PING"), transport)

        assert transport.sent == [("123", PING_REPLY)]

    @pytest.mark.asyncio
    async def test_persisted_command_reply(self, message_router, registry, transport, runtime):
        await registry.create(".help", "X")

        await message_router.handle_message(_message(".help"), transport)

        assert transport.sent == [("123", "X")]
        record = runtime.messages.to_list()[0]
        assert (record.sender_id, record.text) == ("123", ".help")

    @pytest.mark.asyncio
    async def test_trigger_whitespace_and_case_insensitive(self, message_router, registry, transport):
        await registry.create(" .Help ", "X")

        await message_router.handle_message(_message(".help"), transport)

        assert transport.sent == [("123", "X")]

    @pytest.mark.asyncio
    async def test_no_match_sends_nothing(self, message_router, registry, transport):
        await registry.create(".help", "X")

        assert await message_router.handle_message(_message("hello"), transport) is None
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_send_failure_propagates(self, message_router, transport, runtime):
        transport.send_error = ConnectionError("socket closed")

        with pytest.raises(ConnectionError):
            await message_router.handle_message(_message("ping"), transport)
        assert len(runtime.messages) == 1


class TestTextExtraction:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "content,expected",
        [
            ({"conversation": "plain", "extendedTextMessage": {"text": "ext"}}, "plain"),
            ({"extendedTextMessage": {"text": "ext"}, "imageMessage": {"caption": "img"}}, "ext"),
            ({"imageMessage": {"caption": "img"}, "videoMessage": {"caption": "vid"}}, "img"),
            ({"videoMessage": {"caption": "vid"}, "documentMessage": {"caption": "doc"}}, "vid"),
            ({"documentMessage": {"caption": "doc"}}, "doc"),
            ({"conversation": "", "imageMessage": {"caption": "img"}}, "img"),
        ],
    )
    async def test_priority_order(self, message_router, transport, runtime, content, expected):
        await message_router.handle_message(_message(content=content), transport)

        assert runtime.messages.to_list()[0].text == expected
