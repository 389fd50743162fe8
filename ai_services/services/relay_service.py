"""中继 Service。

本模块负责：

1. 接收调用方的 content（字符串 / parts / Content / Content 列表）。
2. 做能力检查与轻量结构校验。
3. 序列化为 JSON 结构后交给 RelayTransport，由服务端调用真正的厂商 API。
4. 将返回的候选列表解析为统一的 Candidate 结构。

本变体不进一步解释 content，归一化已在上游完成。
"""

from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

from ai_services.chat.session import ChatSession
from ai_services.domain.conversation import content_to_payload, validate_content
from ai_services.domain.exceptions import ApiError, InvalidArgumentError
from ai_services.domain.models import Candidate, ServiceDescriptor
from ai_services.infrastructure.logging.logger import logger
from ai_services.infrastructure.relay.http_relay import RelayTransport
from ai_services.services.base import (
    CALLER_ERRORS,
    ensure_models,
    ensure_text_generation,
    open_chat,
    to_service_error,
)


class RelayService:
    """通过服务端中继访问的 Service（除本地引擎外的所有 Service）。"""

    def __init__(self, descriptor: ServiceDescriptor, transport: RelayTransport):
        ensure_models(descriptor)
        self._descriptor = descriptor
        self._transport = transport

    def __repr__(self) -> str:
        return f"RelayService(slug={self._descriptor.slug!r})"

    def get_service_slug(self) -> str:
        return self._descriptor.slug

    def get_service_name(self) -> str:
        return self._descriptor.name

    def get_capabilities(self) -> FrozenSet[str]:
        return self._descriptor.capabilities

    def has_capability(self, capability: str) -> bool:
        return capability in self._descriptor.capabilities

    def list_models(self) -> Tuple[str, ...]:
        return self._descriptor.available_models

    async def generate_text(
        self,
        content: Any,
        model: Optional[str] = None,
        model_params: Optional[Dict[str, Any]] = None,
    ) -> List[Candidate]:
        """执行一次文本生成调用。

        步骤：
        1. 能力检查（缺少 text-generation 时直接失败，与 content 是否合法无关）。
        2. 轻量校验 content 结构。
        3. 构造请求并提交给中继。
        4. 解析候选；任何传输/解析错误都包装为 ServiceError。
        """

        ensure_text_generation(self._descriptor)
        validate_content(content)

        slug = self._descriptor.slug
        payload = {
            "content": content_to_payload(content),
            "model": model or "",
            "modelParams": model_params or {},
        }
        logger.info(
            "relay generate_text",
            extra={"extra": {"service": slug, "model": payload["model"]}},
        )
        try:
            data = await self._transport.generate_text(slug, payload)
            candidates = self._parse_candidates(data)
        except CALLER_ERRORS:
            raise
        except Exception as e:
            error = to_service_error(e, slug)
            logger.error(
                f"relay generate_text failed: {error.message}",
                extra={"extra": {"service": slug, "error": error.message}},
            )
            raise error from e
        return candidates

    def start_chat(
        self,
        history: Optional[Sequence[Any]] = None,
        model: Optional[str] = None,
        model_params: Optional[Dict[str, Any]] = None,
    ) -> ChatSession:
        return open_chat(self, self._descriptor, history, model, model_params)

    @staticmethod
    def _parse_candidates(data: Any) -> List[Candidate]:
        """将中继返回的 JSON 解析为 Candidate 列表。

        服务端可能直接返回数组，也可能包一层 {"candidates": [...]}。
        """

        if isinstance(data, dict) and "candidates" in data:
            data = data["candidates"]
        if not isinstance(data, list):
            raise ApiError(code="INVALID_RESPONSE", message="The relay response is not a list of candidates.")
        try:
            candidates = [c if isinstance(c, Candidate) else Candidate.from_dict(c) for c in data]
        except (AttributeError, TypeError, ValueError, InvalidArgumentError) as e:
            raise ApiError(code="INVALID_RESPONSE", message=f"Malformed candidate in relay response: {e}")
        for candidate in candidates:
            # 候选内容必须有 role 且至少包含一个片段
            if not candidate.content.role or not candidate.content.parts:
                raise ApiError(
                    code="INVALID_RESPONSE",
                    message="Candidate content in relay response must have a role and at least one part.",
                )
        return candidates
