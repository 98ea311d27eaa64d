import logging
import threading
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from chat_core.config.settings import settings
from chat_core.domain.conversation import ConversationStore, StoreEvent, StoreEventKind, StoreListener
from chat_core.domain.exceptions import ConsistencyError
from chat_core.domain.models import Message, MessageRole, MessageState
from chat_core.infrastructure.logging.logger import logger


class InMemoryConversationStore(ConversationStore):
    """进程内的有序消息列表，只追加，不重排、不删除。"""

    def __init__(self, placeholder_text: Optional[str] = None):
        self._placeholder = settings.placeholder_text if placeholder_text is None else placeholder_text
        self._messages: List[Message] = []
        self._index: Dict[str, Message] = {}
        self._listeners: List[StoreListener] = []
        self._lock = threading.RLock()

    @property
    def placeholder_text(self) -> str:
        return self._placeholder

    def append_user(self, content: str) -> str:
        msg = Message(
            id=self._new_id(),
            role=MessageRole.USER,
            content=content,
            is_loading=False,
            state=MessageState.COMPLETE,
        )
        self._append(msg)
        return msg.id

    def append_pending_assistant(self) -> str:
        msg = Message(
            id=self._new_id(),
            role=MessageRole.ASSISTANT,
            content=self._placeholder,
            is_loading=True,
            state=MessageState.PENDING,
        )
        self._append(msg)
        return msg.id

    def apply_fragment(self, message_id: str, fragment_text: str) -> None:
        with self._lock:
            msg = self._require_assistant(message_id)
            if msg.is_terminal:
                raise ConsistencyError(
                    code="MESSAGE_CLOSED",
                    message=f"Fragment applied to {msg.state.value} message {message_id}",
                    message_id=message_id,
                )
            if msg.state is MessageState.PENDING:
                # 第一个片段整体替换占位符
                msg.content = fragment_text
            else:
                msg.content += fragment_text
            msg.state = MessageState.STREAMING
            msg.is_loading = False
            self._notify("updated", msg)

    def apply_error(self, message_id: str, error_text: str) -> None:
        with self._lock:
            msg = self._require_assistant(message_id)
            msg.content = error_text
            msg.state = MessageState.FAILED
            msg.is_loading = False
            self._notify("updated", msg)

    def complete(self, message_id: str) -> None:
        with self._lock:
            msg = self._require_assistant(message_id)
            if msg.is_terminal:
                return
            if msg.state is MessageState.PENDING:
                msg.content = ""
            msg.state = MessageState.COMPLETE
            msg.is_loading = False
            self._notify("updated", msg)

    def get(self, message_id: str) -> Message:
        with self._lock:
            return self._require(message_id).copy()

    def snapshot(self) -> List[Message]:
        with self._lock:
            return [m.copy() for m in self._messages]

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def _append(self, msg: Message) -> None:
        with self._lock:
            if msg.id in self._index:
                raise ConsistencyError(code="DUPLICATE_MESSAGE_ID", message=msg.id)
            self._messages.append(msg)
            self._index[msg.id] = msg
            logger.debug(
                "Appended message",
                extra={"extra": {"message_id": msg.id, "role": msg.role.value, "position": len(self._messages)}},
            )
            self._notify("appended", msg)

    def _new_id(self) -> str:
        with self._lock:
            while True:
                mid = f"m-{uuid4().hex}"
                if mid not in self._index:
                    return mid

    def _require(self, message_id: str) -> Message:
        msg = self._index.get(message_id)
        if msg is None:
            raise ConsistencyError(code="MESSAGE_NOT_FOUND", message=message_id, message_id=message_id)
        return msg

    def _require_assistant(self, message_id: str) -> Message:
        msg = self._require(message_id)
        if msg.role is not MessageRole.ASSISTANT:
            raise ConsistencyError(
                code="NOT_ASSISTANT_MESSAGE",
                message=f"Message {message_id} is not an assistant message",
                message_id=message_id,
            )
        return msg

    def _notify(self, kind: StoreEventKind, msg: Message) -> None:
        event = StoreEvent(kind=kind, message=msg.copy())
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.log(
                    logging.ERROR,
                    "Store listener failed",
                    exc_info=True,
                    extra={"extra": {"message_id": msg.id, "event": kind}},
                )
