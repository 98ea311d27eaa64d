"""对外 API 服务模块。

提供简化的函数接口供上层应用（CLI、桌面壳等）调用。
"""

from typing import Any, Dict, List, Optional

from chat_core.agents.chat_session import ChatSession
from chat_core.domain.models import Message
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers import create_backend


_session: Optional[ChatSession] = None


def get_default_session(backend_url: Optional[str] = None) -> ChatSession:
    """获取默认的聊天会话实例（单例）。"""
    global _session
    if _session is None:
        _session = ChatSession(backend=create_backend(backend_url))
    return _session


def reset_default_session() -> None:
    global _session
    _session = None


def message_to_dict(m: Message) -> Dict[str, Any]:
    return {
        "id": m.id,
        "role": m.role.value,
        "content": m.content,
        "is_loading": m.is_loading,
        "state": m.state.value,
        "created_at": m.created_at.isoformat(),
    }


async def load_model(model_path: str) -> Dict[str, Any]:
    """加载模型并返回加载结果。

    Returns:
        包含 loaded、state 以及失败时 error 字段的字典
    """
    session = get_default_session()
    loaded = await session.load_model(model_path)
    result: Dict[str, Any] = {"loaded": loaded, "state": session.model_state.value}
    if not loaded and session.gate.last_error is not None:
        result["error"] = {
            "code": session.gate.last_error.code,
            "message": session.gate.last_error.message,
        }
    return result


def eject_model() -> Dict[str, Any]:
    session = get_default_session()
    session.eject()
    return {"state": session.model_state.value}


async def send_message(content: str) -> Dict[str, Any]:
    """发送一条用户消息并等待回复结束。

    Args:
        content: 用户输入内容

    Returns:
        包含用户消息、助手消息与是否失败的字典

    Raises:
        各种 domain.exceptions 中定义的异常
    """
    session = get_default_session()
    try:
        submission = await session.submit(content)
    except Exception as e:
        logger.error(f"Send failed: {e}", extra={"extra": {"error": str(e)}})
        raise
    store = session.store
    return {
        "user_message": message_to_dict(store.get(submission.user_message_id)),
        "assistant_message": message_to_dict(store.get(submission.assistant_message_id)),
        "failed": submission.failed,
    }


def list_messages() -> List[Dict[str, Any]]:
    """按显示顺序列出当前会话的所有消息。"""
    return [message_to_dict(m) for m in get_default_session().messages()]
