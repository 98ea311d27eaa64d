"""单次请求/响应循环的协调器。

每次用户提交对应一个独立的循环：
1. 追加用户消息与助手占位消息；
2. 用追加之前的历史快照加本轮输入生成 prompt；
3. 打开一个流式通道并调用后端；
4. 按到达顺序把每个片段逐条写入占位消息；
5. 后端或传输故障时写入固定错误文本并停止消费；
6. 正常结束时标记消息完成。

协调器不对并发提交做互斥，也不提供取消。
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional
from uuid import uuid4

from chat_core.config.settings import settings
from chat_core.domain.conversation import ConversationStore
from chat_core.domain.exceptions import BusinessError, ConsistencyError, GenerationError
from chat_core.infrastructure.logging.logger import logger
from chat_core.prompts import format_prompt
from chat_core.providers.base import InferenceBackend
from chat_core.providers.channel import ResponseChannel


@dataclass
class Submission:
    """一次提交的结果。"""

    user_message_id: str
    assistant_message_id: str
    fragment_count: int = 0
    failed: bool = False
    error: Optional[BusinessError] = None


class StreamingResponseCoordinator:
    def __init__(
        self,
        store: ConversationStore,
        backend: InferenceBackend,
        error_text: Optional[str] = None,
    ):
        self._store = store
        self._backend = backend
        self._error_text = error_text or settings.error_text

    @property
    def error_text(self) -> str:
        return self._error_text

    async def submit(self, content: str) -> Submission:
        """执行一次完整的循环，返回时消息已处于终态。"""

        start_time = time.time()
        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}"}

        history = self._store.snapshot()
        user_id = self._store.append_user(content)
        assistant_id = self._store.append_pending_assistant()
        submission = Submission(user_message_id=user_id, assistant_message_id=assistant_id)
        log_ctx["assistant_message_id"] = assistant_id

        prompt = format_prompt(history, content)
        self._log(
            logging.INFO,
            "Calling backend (stream)",
            log_ctx,
            backend=getattr(self._backend, "name", "unknown"),
            history_messages=len(history),
            prompt_chars=len(prompt),
        )

        channel = ResponseChannel()
        producer = asyncio.create_task(self._produce(prompt, channel))
        fault: Optional[BusinessError] = None
        try:
            async for event in channel:
                self._store.apply_fragment(assistant_id, event.response)
                submission.fragment_count += 1
        except (ConsistencyError, asyncio.CancelledError):
            producer.cancel()
            raise
        except BusinessError as e:
            fault = e
        # 后端可能先关闭通道再出错，结果以生产者的最终状态为准
        await asyncio.wait({producer})
        if fault is None:
            fault = self._producer_fault(producer)

        if fault is None:
            self._store.complete(assistant_id)
        else:
            submission.failed = True
            submission.error = fault
            self._store.apply_error(assistant_id, self._error_text)
            self._log(
                logging.ERROR,
                "Generation failed",
                log_ctx,
                code=fault.code,
                error=fault.message,
                fragments=submission.fragment_count,
            )

        self._log(
            logging.INFO,
            "Completed response cycle",
            log_ctx,
            elapsed_seconds=round(time.time() - start_time, 2),
            fragments=submission.fragment_count,
            failed=submission.failed,
        )
        return submission

    async def _produce(self, prompt: str, channel: ResponseChannel) -> Optional[BusinessError]:
        fault: Optional[BusinessError] = None
        try:
            await self._backend.generate_response(prompt, channel)
        except asyncio.CancelledError:
            channel.fail(_cancelled_error())
            raise
        except BusinessError as e:
            fault = e
        except Exception as e:
            fault = GenerationError(code="GENERATION_FAILED", message=str(e) or type(e).__name__)
        if fault is None:
            channel.close()
        else:
            channel.fail(fault)
        return fault

    @staticmethod
    def _producer_fault(producer: "asyncio.Task[Optional[BusinessError]]") -> Optional[BusinessError]:
        if producer.cancelled():
            return _cancelled_error()
        exc = producer.exception()
        if exc is not None:
            return GenerationError(code="GENERATION_FAILED", message=str(exc) or type(exc).__name__)
        return producer.result()

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})


def _cancelled_error() -> GenerationError:
    return GenerationError(code="GENERATION_CANCELLED", message="Backend generation was cancelled")
