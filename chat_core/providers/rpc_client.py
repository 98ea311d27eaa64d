"""本地推理服务 RPC 适配器。

本模块负责：

1. 以命令式 JSON RPC 调用本地推理服务的 load_model / response 两个命令。
2. 处理网络/服务端异常，统一转换为 domain.exceptions 中的业务异常。
3. 把流式响应的每一行解析为 StreamingEvent，并按到达顺序推入 ResponseChannel。

线上格式：

- POST {base}/load_model  {"model_path": "..."}  ->  true / false（或 {"loaded": bool}）
- POST {base}/response    {"input": "<prompt>"}  ->  按行推送的事件记录，
  每行形如 {"event": "streaming", "data": {"response": "..."}}，允许 "data:" 前缀。
"""

import json
from typing import Any, Optional

import httpx

from chat_core.domain.exceptions import ApiError, NetworkError, RateLimitError
from chat_core.domain.models import StreamingEvent
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.channel import ResponseChannel


class RpcBackend:
    """通过 HTTP 命令 RPC 访问本地推理服务。"""

    name = "rpc"

    def __init__(self, settings, base_url: Optional[str] = None):
        # Settings 里包含 backend_url、超时等配置
        self._settings = settings
        self._base_url = (base_url or settings.backend_url).rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base_url

    async def load_model(self, model_path: str) -> bool:
        """请求后端加载模型文件，返回后端报告的结果。"""

        try:
            async with httpx.AsyncClient(timeout=self._load_timeout(), trust_env=False) as client:
                resp = await client.post(
                    f"{self._base_url}/load_model",
                    json={"model_path": model_path},
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
        self._raise_for_status(resp.status_code, resp.text)
        return self._parse_load_result(resp.json())

    async def generate_response(self, prompt: str, channel: ResponseChannel) -> None:
        """开始生成，把每个片段按顺序推入 channel，流结束后返回。"""

        try:
            async with httpx.AsyncClient(timeout=self._stream_timeout(), trust_env=False) as client:
                async with client.stream(
                    "POST",
                    f"{self._base_url}/response",
                    json={"input": prompt},
                ) as resp:
                    if resp.status_code >= 400:
                        body = await resp.aread()
                        self._raise_for_status(resp.status_code, body.decode("utf-8", errors="replace"))
                    async for line in resp.aiter_lines():
                        event = self._parse_stream_line(line)
                        if event is not None:
                            channel.send(event)
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))

    def _load_timeout(self) -> httpx.Timeout:
        # 模型加载可能很慢，读超时不设上限
        return httpx.Timeout(self._settings.http_timeout, read=None)

    def _stream_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            self._settings.http_timeout,
            read=getattr(self._settings, "stream_read_timeout", None),
        )

    @staticmethod
    def _raise_for_status(status_code: int, text: str) -> None:
        if status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="Inference backend busy", http_status=429)
        if status_code >= 400:
            raise ApiError(code="API_ERROR", message=text, http_status=status_code)

    @staticmethod
    def _parse_load_result(data: Any) -> bool:
        if isinstance(data, bool):
            return data
        if isinstance(data, dict):
            return bool(data.get("loaded", data.get("ok", False)))
        return False

    @staticmethod
    def _parse_stream_line(line: str) -> Optional[StreamingEvent]:
        """解析流式响应中的单行；无法解析的行返回 None。"""

        data_str = (line or "").strip()
        if data_str.startswith("data:"):
            data_str = data_str[5:].strip()
        if not data_str or data_str == "[DONE]":
            return None
        try:
            payload = json.loads(data_str)
        except json.JSONDecodeError:
            logger.debug("Skipped undecodable stream line", extra={"extra": {"line": data_str[:80]}})
            return None
        if not isinstance(payload, dict):
            return None
        try:
            return StreamingEvent.from_payload(payload)
        except ValueError:
            logger.debug("Skipped unknown stream record", extra={"extra": {"line": data_str[:80]}})
            return None
