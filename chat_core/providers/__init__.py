"""推理后端集成层。

该包下的模块负责：
- 定义后端抽象接口 (base)。
- 提供有序的流式片段通道 (channel)。
- 提供具体实现 (如 rpc_client)。
"""

from typing import Optional

from chat_core.config.settings import settings
from chat_core.providers.base import InferenceBackend
from chat_core.providers.channel import ResponseChannel
from chat_core.providers.rpc_client import RpcBackend


def create_backend(base_url: Optional[str] = None) -> InferenceBackend:
    """根据配置创建后端实例，base_url 为空时取配置中的 backend_url。"""

    return RpcBackend(settings, base_url=base_url)


__all__ = ["InferenceBackend", "ResponseChannel", "RpcBackend", "create_backend"]
