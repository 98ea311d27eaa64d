"""ChatML 提示词格式化。

把已完成轮次的对话历史与本轮用户输入拼接成发送给后端的完整 prompt：

    <|im_start|>{role}\\n{content}<|im_end|>\\n   （每条历史消息）
    <|im_start|>user\\n{新输入}<|im_end|>\\n<|im_start|>assistant\\n

纯函数，不做截断；上下文长度限制由后端负责。
"""

from typing import Iterable

from chat_core.domain.models import Message, MessageRole


IM_START = "<|im_start|>"
IM_END = "<|im_end|>"

_ROLE_TOKENS = {
    MessageRole.USER: "user",
    MessageRole.ASSISTANT: "assistant",
}


def role_token(role: MessageRole) -> str:
    """返回角色在 ChatML 中的标记。"""

    return _ROLE_TOKENS[MessageRole(role)]


def format_turn(role: MessageRole, content: str) -> str:
    return f"{IM_START}{role_token(role)}\n{content}{IM_END}\n"


def format_prompt(history: Iterable[Message], new_user_content: str) -> str:
    """根据历史消息与新的用户输入生成完整 prompt。

    history 必须是追加本轮用户消息与助手占位消息之前的快照。
    """

    parts = [format_turn(m.role, m.content) for m in history]
    parts.append(format_turn(MessageRole.USER, new_user_content))
    parts.append(f"{IM_START}{role_token(MessageRole.ASSISTANT)}\n")
    return "".join(parts)


__all__ = ["IM_START", "IM_END", "role_token", "format_turn", "format_prompt"]
