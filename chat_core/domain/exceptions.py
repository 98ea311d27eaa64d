"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 CLI 层或 Session 层做统一捕获与用户提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "MODEL_NOT_LOADED"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 message_id、model_path 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BusinessError):
    """推理后端返回非 2xx/429 错误时抛出。"""


class RateLimitError(BusinessError):
    """后端限流错误。本层不做重试，直接作为生成失败处理。"""


class ValidationError(BusinessError):
    """参数、配置或调用前置条件校验失败。"""


class ModelLoadError(BusinessError):
    """模型加载失败（后端返回 false 或调用异常）。"""


class GenerationError(BusinessError):
    """生成过程中后端抛出的非业务异常，统一包装后交给协调器。"""


class ConsistencyError(BusinessError):
    """会话存储与协调器之间状态不一致。

    例如对不存在的消息 id 调用 apply_fragment。属于编程错误，
    不应被当作可恢复的运行时状况吞掉。
    """

    def __init__(self, code: str, message: str, **extra):
        super().__init__(code, message, http_status=500, **extra)
