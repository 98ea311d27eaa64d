import asyncio

import pytest

from chat_core.domain.exceptions import NetworkError
from chat_core.domain.models import StreamingEvent
from chat_core.providers.channel import ResponseChannel


async def _drain(channel):
    return [event.response async for event in channel]


@pytest.mark.asyncio
async def test_channel_delivers_in_order_until_closed():
    channel = ResponseChannel()
    channel.send_fragment("a")
    channel.send({"response": "b"})
    channel.send({"event": "streaming", "data": {"response": "c"}})
    channel.close()
    assert await _drain(channel) == ["a", "b", "c"]
    assert channel.sent_count == 3
    # 终止后再次迭代立即结束
    assert await _drain(channel) == []


@pytest.mark.asyncio
async def test_channel_raises_fault_after_buffered_events():
    channel = ResponseChannel()
    channel.send_fragment("partial")
    channel.fail(NetworkError(code="NETWORK_ERROR", message="reset"))
    received = []
    with pytest.raises(NetworkError):
        async for event in channel:
            received.append(event.response)
    assert received == ["partial"]


@pytest.mark.asyncio
async def test_send_after_close_is_dropped():
    channel = ResponseChannel()
    channel.close()
    assert channel.send_fragment("late") is False
    channel.fail(RuntimeError("ignored"))
    assert await _drain(channel) == []


@pytest.mark.asyncio
async def test_consumer_waits_for_producer():
    channel = ResponseChannel()

    async def produce():
        for text in ["x", "y"]:
            await asyncio.sleep(0)
            channel.send_fragment(text)
        channel.close()

    task = asyncio.create_task(produce())
    assert await _drain(channel) == ["x", "y"]
    await task


def test_streaming_event_payloads():
    assert StreamingEvent.from_payload({"event": "Streaming", "data": {"response": "hi"}}).response == "hi"
    assert StreamingEvent.from_payload({"response": None}).response == ""
    with pytest.raises(ValueError):
        StreamingEvent.from_payload({"event": "done", "data": {}})
    with pytest.raises(ValueError):
        StreamingEvent.from_payload({"text": "x"})
