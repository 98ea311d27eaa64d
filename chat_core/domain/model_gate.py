"""模型加载状态机。

    UNLOADED --load(成功)--> LOADED
    UNLOADED --load(失败)--> UNLOADED   （状态不变，结果返回给调用方）
    LOADED   --eject------> UNLOADED    （纯本地状态切换，不调用后端）

ModelGate 本身不限制何时可以提交消息，该策略由组合它的 ChatSession 负责。
"""

from pathlib import Path
from typing import Optional, Union

from chat_core.domain.exceptions import BusinessError, ModelLoadError, ValidationError
from chat_core.domain.models import ModelState
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.base import InferenceBackend


class ModelGate:
    def __init__(self, backend: InferenceBackend):
        self._backend = backend
        self._state = ModelState.UNLOADED
        self._model_path: Optional[str] = None
        self.last_error: Optional[BusinessError] = None

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def is_loaded(self) -> bool:
        return self._state is ModelState.LOADED

    @property
    def model_path(self) -> Optional[str]:
        return self._model_path

    async def load(self, model_path: Union[str, Path]) -> bool:
        """请求后端加载模型，仅在后端报告成功时切换到 LOADED。"""

        if self.is_loaded:
            raise ValidationError(
                code="MODEL_ALREADY_LOADED",
                message="A model is already loaded; eject it first",
                model_path=self._model_path,
            )
        path = str(model_path)
        self.last_error = None
        try:
            loaded = await self._backend.load_model(path)
        except BusinessError as e:
            self.last_error = e
            logger.warning(
                "Model load failed",
                extra={"extra": {"model_path": path, "code": e.code, "error": e.message}},
            )
            return False
        except Exception as e:
            self.last_error = ModelLoadError(code="MODEL_LOAD_FAILED", message=str(e), model_path=path)
            logger.warning(
                "Model load failed",
                exc_info=True,
                extra={"extra": {"model_path": path, "code": "MODEL_LOAD_FAILED"}},
            )
            return False

        if not loaded:
            self.last_error = ModelLoadError(
                code="MODEL_LOAD_REJECTED",
                message="Backend reported the model could not be loaded",
                model_path=path,
            )
            logger.warning("Model load rejected", extra={"extra": {"model_path": path}})
            return False

        self._state = ModelState.LOADED
        self._model_path = path
        logger.info("Model loaded", extra={"extra": {"model_path": path}})
        return True

    def eject(self) -> None:
        """回到 UNLOADED；不调用后端，不会失败。"""

        if self._state is ModelState.UNLOADED:
            return
        logger.info("Model ejected", extra={"extra": {"model_path": self._model_path}})
        self._state = ModelState.UNLOADED
        self._model_path = None
