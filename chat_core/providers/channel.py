"""流式响应通道。

后端通过 send() 按顺序推送片段，close() 表示正常结束，fail() 表示出错；
协调器用 ``async for`` 在同一个事件循环里按推送顺序逐条消费。
"""

import asyncio
from typing import Any, AsyncIterator, Mapping, Optional, Union

from chat_core.domain.models import StreamingEvent
from chat_core.infrastructure.logging.logger import logger


class _Closed:
    pass


_CLOSED = _Closed()


class ResponseChannel:
    """有序、无界、推送式的片段通道。一个通道只对应一次生成。"""

    def __init__(self) -> None:
        self._queue: "asyncio.Queue[Union[StreamingEvent, _Closed]]" = asyncio.Queue()
        self._error: Optional[BaseException] = None
        self._closed = False
        self._sent = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def sent_count(self) -> int:
        return self._sent

    def send(self, event: Union[StreamingEvent, Mapping[str, Any]]) -> bool:
        """推送一条记录；通道已关闭时丢弃并返回 False。"""

        if self._closed:
            logger.debug("Dropped event on closed channel")
            return False
        if not isinstance(event, StreamingEvent):
            event = StreamingEvent.from_payload(event)
        self._queue.put_nowait(event)
        self._sent += 1
        return True

    def send_fragment(self, text: str) -> bool:
        return self.send(StreamingEvent(response=text))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def fail(self, exc: BaseException) -> None:
        if self._closed:
            return
        self._error = exc
        self.close()

    def __aiter__(self) -> AsyncIterator[StreamingEvent]:
        return self

    async def __anext__(self) -> StreamingEvent:
        item = await self._queue.get()
        if isinstance(item, _Closed):
            # 保持终止状态，重复迭代也会立即结束
            self._queue.put_nowait(_CLOSED)
            if self._error is not None:
                raise self._error
            raise StopAsyncIteration
        return item
