"""聊天会话的便捷包装。

组合 ConversationStore、ModelGate 与 StreamingResponseCoordinator，
并负责提交策略：只有模型已加载且输入非空时才允许提交。
"""

from pathlib import Path
from typing import Callable, List, Optional, Union

from chat_core.agents.coordinator import StreamingResponseCoordinator, Submission
from chat_core.config.settings import settings
from chat_core.domain.conversation import ConversationStore, StoreListener
from chat_core.domain.exceptions import ValidationError
from chat_core.domain.model_gate import ModelGate
from chat_core.domain.models import Message, ModelState
from chat_core.infrastructure.model_files import validate_model_path
from chat_core.infrastructure.storage.memory_store import InMemoryConversationStore
from chat_core.providers.base import InferenceBackend


class ChatSession:
    """单窗口聊天会话。"""

    def __init__(
        self,
        backend: InferenceBackend,
        store: Optional[ConversationStore] = None,
        error_text: Optional[str] = None,
        validate_paths: bool = True,
    ):
        """初始化会话。

        Args:
            backend: 推理后端实例
            store: 会话存储（可选，默认使用进程内存储）
            error_text: 生成失败时写入助手消息的固定文本（可选）
            validate_paths: 加载前是否校验模型文件存在且后缀合法
        """
        self._store = store if store is not None else InMemoryConversationStore()
        self._gate = ModelGate(backend)
        self._coordinator = StreamingResponseCoordinator(
            store=self._store,
            backend=backend,
            error_text=error_text or settings.error_text,
        )
        self._validate_paths = validate_paths

    @property
    def store(self) -> ConversationStore:
        return self._store

    @property
    def gate(self) -> ModelGate:
        return self._gate

    @property
    def model_state(self) -> ModelState:
        return self._gate.state

    async def load_model(self, model_path: Union[str, Path]) -> bool:
        """校验路径后请求加载模型；失败时会话状态不变。"""

        path = validate_model_path(model_path) if self._validate_paths else Path(model_path)
        return await self._gate.load(str(path))

    def eject(self) -> None:
        self._gate.eject()

    async def submit(self, content: str) -> Submission:
        """提交一条用户消息并等待本轮回复结束。"""

        if content is None or not content.strip():
            raise ValidationError(code="EMPTY_MESSAGE", message="Message cannot be empty")
        if not self._gate.is_loaded:
            raise ValidationError(code="MODEL_NOT_LOADED", message="Load a model before sending messages")
        return await self._coordinator.submit(content)

    def messages(self) -> List[Message]:
        return self._store.snapshot()

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        return self._store.subscribe(listener)
