"""本地推理引擎适配器。

本地引擎只接受扁平文本，不支持多轮历史。这里定义引擎协议，并提供一个
对接端侧 OpenAI 兼容服务（例如本机运行的推理进程）的默认实现：

1. create_text_session(options): 根据配置项创建会话（不发起网络请求）。
2. session.prompt(text): 以单条 user 消息调用 {base_url}/chat/completions，
   返回第一条候选的纯文本。
"""

from typing import Any, Dict, Mapping, Optional, Protocol

import httpx

from ai_services.config.settings import settings
from ai_services.domain.exceptions import ApiError, NetworkError, RateLimitError


class LocalEngineSession(Protocol):
    async def prompt(self, text: str) -> str:
        ...


class LocalEngine(Protocol):
    """本地推理引擎协议：创建会话 + 单次补全。"""

    async def create_text_session(self, options: Mapping[str, Any]) -> LocalEngineSession:
        ...


class OpenAICompatibleSession:
    """一次本地引擎会话，持有创建时的生成参数。"""

    def __init__(self, cfg, model: str, params: Dict[str, Any], system_prompt: Optional[str] = None):
        self._settings = cfg
        self.model = model
        self.params = params
        self.system_prompt = system_prompt

    async def prompt(self, text: str) -> str:
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": text})
        payload = {"model": self.model, "messages": messages, "stream": False, **self.params}

        headers = {"Content-Type": "application/json"}
        api_key = getattr(self._settings, "local_engine_api_key", None)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        base = self._settings.local_engine_base_url.rstrip("/")
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(f"{base}/chat/completions", json=payload, headers=headers)
        except httpx.RequestError as e:
            raise NetworkError(message=str(e) or type(e).__name__)
        if resp.status_code == 429:
            raise RateLimitError(message="Local engine rate limit")
        if resp.status_code >= 400:
            raise ApiError(message=resp.text, http_status=resp.status_code)
        data = resp.json()
        choices = data.get("choices") or []
        if not choices:
            raise ApiError(code="EMPTY_RESPONSE", message="The local engine returned no choices.")
        msg = choices[0].get("message") or {}
        return msg.get("content") or ""


class OpenAICompatibleEngine:
    """默认本地引擎实现。

    options 沿用浏览器内置 AI 的命名（model / temperature / topK / systemPrompt），
    这里映射为 OpenAI 兼容接口的字段；未识别的键原样透传。
    """

    _OPTION_MAP = {"topK": "top_k", "topP": "top_p", "maxOutputTokens": "max_tokens"}

    def __init__(self, cfg=settings):
        self._settings = cfg

    async def create_text_session(self, options: Mapping[str, Any]) -> OpenAICompatibleSession:
        opts = dict(options or {})
        model = opts.pop("model", None) or self._settings.local_engine_default_model
        system_prompt = opts.pop("systemPrompt", None)
        params = {self._OPTION_MAP.get(k, k): v for k, v in opts.items()}
        return OpenAICompatibleSession(self._settings, model=model, params=params, system_prompt=system_prompt)
