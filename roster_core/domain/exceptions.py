"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 controller 层或 UI 层做统一捕获与用户提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "API_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 endpoint、contact_id 等）。
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
    """后端返回非 2xx 响应时抛出。

    server_message 保存响应体中的 message 字段（可能为空），
    上层据此决定是展示服务端文案还是使用各操作自己的兜底文案。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, server_message=None, **extra):
        super().__init__(code, message, http_status, **extra)
        self.server_message = server_message


class ValidationError(BusinessError):
    """参数、配置或响应结构校验失败。"""


class StartInFlightError(BusinessError):
    """已有一个发起会话的请求尚未完成，本次调用在客户端被拒绝。"""


class DataIntegrityError(BusinessError, AssertionError):
    """数据完整性错误：例如会话中找不到当前用户以外的参与者。

    同时继承 AssertionError，不应被当作可恢复错误吞掉。
    """
