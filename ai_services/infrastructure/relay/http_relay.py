"""中继传输层（HTTP）。

服务端负责保存各厂商的凭据并真正调用厂商 API；客户端只需要把
归一化后的请求提交到以 slug 命名的生成接口：

- URL: {relay_base_url}{relay_route_prefix}/services/{slug}:generate-text
- 方法: POST，JSON 请求体 {"content", "model", "modelParams"}
- 认证: 可选 Authorization: Bearer <relay_api_key>

响应体为候选回答列表（JSON 数组），本模块不解析候选内容，
只负责把网络/HTTP 层面的失败转换为统一异常。
"""

from typing import Any, Dict, Protocol

import httpx

from ai_services.config.settings import settings
from ai_services.domain.exceptions import ApiError, NetworkError, RateLimitError


class RelayTransport(Protocol):
    """“为某个 Service 提交生成请求”这一逻辑操作。"""

    async def generate_text(self, slug: str, payload: Dict[str, Any]) -> Any:
        ...


class HttpRelayTransport:
    """基于 httpx.AsyncClient 的中继实现。"""

    def __init__(self, cfg=settings):
        # Settings 里包含 base_url、路由前缀、令牌、超时等配置
        self._settings = cfg

    def endpoint(self, slug: str) -> str:
        base = self._settings.relay_base_url.rstrip("/")
        prefix = "/" + self._settings.relay_route_prefix.strip("/")
        return f"{base}{prefix}/services/{slug}:generate-text"

    async def generate_text(self, slug: str, payload: Dict[str, Any]) -> Any:
        headers = {"Content-Type": "application/json"}
        api_key = getattr(self._settings, "relay_api_key", None)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(self.endpoint(slug), json=payload, headers=headers)
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(message=str(e) or type(e).__name__, service=slug)
        if resp.status_code == 429:
            raise RateLimitError(message=f"Relay rate limit for service {slug}", service=slug)
        if resp.status_code >= 400:
            raise self._api_error(resp, slug)
        try:
            return resp.json()
        except ValueError:
            raise ApiError(
                code="INVALID_RESPONSE",
                message="The relay returned a response that is not valid JSON.",
                http_status=resp.status_code,
                service=slug,
            )

    @staticmethod
    def _api_error(resp: httpx.Response, slug: str) -> ApiError:
        """服务端错误体通常是 {"code": ..., "message": ...}，取不到时退回原始文本。"""

        code = None
        message = resp.text
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            code = body.get("code") or None
            message = body.get("message") or message
        return ApiError(code=code, message=message, http_status=resp.status_code, service=slug)
