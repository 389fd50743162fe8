"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
调用方可以只捕获一个基类，也可以按具体子类区分处理：

- InvalidArgumentError / UnsupportedCapabilityError / UnsupportedOperationError:
  在任何 I/O 之前同步抛出，属于调用方错误，不应重试。
- ServiceError: Service 边界上统一包装后的 Provider/传输层错误。
- NetworkError / ApiError / RateLimitError: HTTP 适配器内部使用，
  到达 Service 边界后会被包装为 ServiceError。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "INVALID_ARGUMENT"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 service、model 等）。
    """

    default_code = "BUSINESS_ERROR"

    def __init__(self, code: str | None = None, message: str = "", http_status: int = 400, **extra):
        self.code = code or self.default_code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class InvalidArgumentError(BusinessError):
    """调用参数或 Service 描述不合法（内容结构错误、历史不以 user 开头等）。"""

    default_code = "INVALID_ARGUMENT"


class UnsupportedCapabilityError(BusinessError):
    """所选 Service 不支持请求的能力（例如 text-generation）。"""

    default_code = "UNSUPPORTED_CAPABILITY"


class UnsupportedOperationError(BusinessError):
    """本地推理引擎拒绝的操作，例如一次调用中携带多轮历史。"""

    default_code = "UNSUPPORTED_OPERATION"


class ServiceError(BusinessError):
    """Provider 或传输层失败，在 Service 边界统一包装。"""

    default_code = "SERVICE_ERROR"

    def __init__(self, code: str | None = None, message: str = "", http_status: int = 502, **extra):
        super().__init__(code=code, message=message, http_status=http_status, **extra)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""

    default_code = "NETWORK_ERROR"


class ApiError(BusinessError):
    """中继或本地引擎返回非 2xx/429 错误时抛出。"""

    default_code = "API_ERROR"


class RateLimitError(BusinessError):
    """限流错误，重试/退避策略由调用方决定。"""

    default_code = "RATE_LIMIT"
