from dataclasses import dataclass
from typing import Callable, List, Literal, Protocol

from .models import Message


StoreEventKind = Literal["appended", "updated"]


@dataclass
class StoreEvent:
    """一次存储变更通知，message 为变更后的副本。"""

    kind: StoreEventKind
    message: Message


StoreListener = Callable[[StoreEvent], None]


class ConversationStore(Protocol):
    """会话消息的唯一写入方。

    其他组件只能读取 snapshot()，或通过下列操作请求修改。
    每次修改在调用返回前同步通知所有监听者。
    """

    def append_user(self, content: str) -> str:
        ...

    def append_pending_assistant(self) -> str:
        ...

    def apply_fragment(self, message_id: str, fragment_text: str) -> None:
        ...

    def apply_error(self, message_id: str, error_text: str) -> None:
        ...

    def complete(self, message_id: str) -> None:
        ...

    def get(self, message_id: str) -> Message:
        ...

    def snapshot(self) -> List[Message]:
        ...

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        ...
