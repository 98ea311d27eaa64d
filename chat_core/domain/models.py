"""统一的消息与流式事件数据模型。

本模块定义了 chat_core 内部共享的标准数据结构：

- Message: 一条对话消息（user/assistant），由 ConversationStore 独占写入。
- MessageState: 助手消息的生命周期状态。
- ModelState: 推理后端模型是否已加载。
- StreamingEvent: 后端通过流式通道推送的单个片段记录。

后端适配器（如 RpcBackend）只负责在各自的线上格式与这些模型之间做转换。
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping


class MessageRole(str, Enum):
    """消息角色，创建后不可变。"""

    USER = "user"
    ASSISTANT = "assistant"


class MessageState(str, Enum):
    """消息生命周期。

    - PENDING: 助手消息已创建，尚未收到第一个片段（is_loading=True）。
    - STREAMING: 已收到至少一个片段。
    - COMPLETE: 流正常结束；用户消息创建即为 COMPLETE。
    - FAILED: 生成失败，内容为固定错误文本，终态。
    """

    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"


class ModelState(str, Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"


@dataclass
class Message:
    """一条对话消息。

    - id: 创建时分配的唯一标识，之后不变。
    - role: user / assistant，创建后不变。
    - content: 文本内容；助手消息随片段到达不断增长，用户消息只在创建时设置。
    - is_loading: 仅当助手消息还在等待第一个片段时为 True。
    - state: 生命周期状态，见 MessageState。
    """

    id: str
    role: MessageRole
    content: str
    is_loading: bool = False
    state: MessageState = MessageState.COMPLETE
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def copy(self) -> "Message":
        return replace(self)

    @property
    def is_terminal(self) -> bool:
        return self.state in (MessageState.COMPLETE, MessageState.FAILED)


@dataclass
class StreamingEvent:
    """流式通道中的单条记录，response 为本次增量文本（不是累计文本）。"""

    response: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "StreamingEvent":
        """解析后端推送的 JSON 记录。

        支持两种形式：
        - 带标签的事件：{"event": "streaming", "data": {"response": "..."}}
        - 裸记录：{"response": "..."}
        """

        data: Any = payload
        if "event" in payload:
            event = str(payload.get("event") or "").lower()
            if event != "streaming":
                raise ValueError(f"Unsupported stream event: {payload.get('event')!r}")
            data = payload.get("data") or {}
        if not isinstance(data, Mapping) or "response" not in data:
            raise ValueError("Stream record has no 'response' field")
        return cls(response=str(data["response"] or ""))
