"""推理后端抽象接口。

上层（ModelGate / StreamingResponseCoordinator）不直接依赖具体传输，而是依赖此协议：

- load_model(path): 请求后端加载本地模型文件，成功返回 True。
- generate_response(prompt, channel): 开始生成，片段通过 channel 异步推送，
  函数返回即表示流结束；抛出异常表示传输或后端故障。

这样可以在不改协调器代码的前提下接入其他后端（进程内推理、其他 RPC 协议等）。
"""

from typing import Protocol

from chat_core.providers.channel import ResponseChannel


class InferenceBackend(Protocol):
    """本地推理后端协议。"""

    name: str

    async def load_model(self, model_path: str) -> bool:
        ...

    async def generate_response(self, prompt: str, channel: ResponseChannel) -> None:
        ...
