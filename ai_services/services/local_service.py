"""本地推理 Service，仅用于 slug 为 "browser" 的端侧引擎。

本地引擎只接受扁平文本，因此 generate_text 需要先把结构化内容拍平为
一条 prompt，再把引擎返回的纯文本包装回统一的候选结构。
"""

from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from ai_services.chat.session import ChatSession
from ai_services.domain.conversation import join_part_texts, looks_like_content, validate_content
from ai_services.domain.exceptions import UnsupportedOperationError
from ai_services.domain.models import ROLE_MODEL, Candidate, Content, Part, ServiceDescriptor
from ai_services.infrastructure.local_engine.openai_compat import LocalEngine
from ai_services.infrastructure.logging.logger import logger
from ai_services.services.base import (
    CALLER_ERRORS,
    ensure_models,
    ensure_text_generation,
    open_chat,
    to_service_error,
)

LOCAL_SERVICE_SLUG = "browser"


def flatten_prompt(content: Any) -> str:
    """把 content 拍平为单条文本 prompt。

    - 字符串原样返回；
    - Content 列表只允许一轮，多轮时抛出 UnsupportedOperationError；
    - parts 列表直接拼接；
    - 单个 Content 取其 parts。
    """

    if isinstance(content, str):
        return content
    if isinstance(content, Part):
        return content.text or ""
    if isinstance(content, Sequence):
        if looks_like_content(content[0]):
            if len(content) > 1:
                raise UnsupportedOperationError(
                    message="The browser service does not support history at this time."
                )
            parts = _parts_of(content[0])
        else:
            parts = content
    else:
        parts = _parts_of(content)
    return join_part_texts(parts)


def _parts_of(item: Any) -> Sequence[Any]:
    if isinstance(item, Content):
        return item.parts
    if isinstance(item, Mapping):
        return item.get("parts") or []
    return []


class LocalInferenceService:
    """端侧推理引擎 Service，不支持多轮历史的单次调用。"""

    def __init__(self, descriptor: ServiceDescriptor, engine: LocalEngine):
        ensure_models(descriptor)
        self._descriptor = descriptor
        self._engine = engine

    def __repr__(self) -> str:
        return f"LocalInferenceService(slug={self._descriptor.slug!r})"

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
        ensure_text_generation(self._descriptor)
        validate_content(content)

        prompt = flatten_prompt(content)

        options: Dict[str, Any] = dict(model_params or {})
        if model:
            # 显式 model_params["model"] 优先于 model 参数
            options = {"model": model, **(model_params or {})}

        slug = self._descriptor.slug
        logger.info(
            "local generate_text",
            extra={"extra": {"service": slug, "model": options.get("model"), "prompt_chars": len(prompt)}},
        )
        try:
            session = await self._engine.create_text_session(options)
            result_text = await session.prompt(prompt)
        except CALLER_ERRORS:
            raise
        except Exception as e:
            error = to_service_error(e, slug)
            logger.error(
                f"local generate_text failed: {error.message}",
                extra={"extra": {"service": slug, "error": error.message}},
            )
            raise error from e

        # 包装成与其他 Service 一致的候选结构
        return [Candidate(content=Content(role=ROLE_MODEL, parts=[Part(text=result_text)]))]

    def start_chat(
        self,
        history: Optional[Sequence[Any]] = None,
        model: Optional[str] = None,
        model_params: Optional[Dict[str, Any]] = None,
    ) -> ChatSession:
        return open_chat(self, self._descriptor, history, model, model_params)
