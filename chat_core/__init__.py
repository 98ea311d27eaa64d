"""Chat Core 顶层包。

该包提供本地模型聊天客户端的核心实现，
包括配置加载、领域模型、会话存储、提示词格式化、
模型加载状态机、推理后端适配与流式响应协调等能力。
"""

from chat_core.agents.chat_session import ChatSession
from chat_core.agents.coordinator import StreamingResponseCoordinator, Submission
from chat_core.domain.model_gate import ModelGate
from chat_core.infrastructure.storage.memory_store import InMemoryConversationStore
from chat_core.prompts import format_prompt

__all__ = [
    "ChatSession",
    "StreamingResponseCoordinator",
    "Submission",
    "ModelGate",
    "InMemoryConversationStore",
    "format_prompt",
]
