"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在会话控制器或 UI 层做统一捕获与用户提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "MISSING_API_KEY"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class MissingCredentialError(BusinessError):
    """所选 Provider 没有配置 API Key，请求不会发出。"""


class TransportError(BusinessError):
    """网络层错误，例如 DNS 失败、连接失败、超时等。"""


class ProviderError(BusinessError):
    """Provider 返回了结构化的 error.message。"""


class UnparsableResponseError(BusinessError):
    """响应既不是成功结构也不是错误结构。

    raw_preview 保存截断后的原始响应体（最多 200 字符），便于排查。
    """

    def __init__(self, code: str, message: str, raw_preview: str = "", **extra):
        super().__init__(code=code, message=message, **extra)
        self.raw_preview = raw_preview


class CaptureStartError(BusinessError):
    """语音识别无法启动（权限被拒绝、麦克风不可用等）。"""


class StoreError(BusinessError):
    """本地存储读写失败。"""


class InvalidImageError(BusinessError):
    """附带的图片无法解码。"""


class ValidationError(BusinessError):
    """参数或配置校验失败，例如空问题。"""
