"""Service 抽象接口。

上层代码不直接依赖中继或本地引擎，而是依赖此协议：

- 每种 Service 变体实现一个类（RelayService、LocalInferenceService），互不继承。
- 公共的能力检查、内容校验、错误包装与开启会话逻辑放在本模块的函数中，
  各变体在各自的方法里调用，保证“统一入口 + 各自分发”的结构。
"""

from typing import Any, Dict, FrozenSet, List, Optional, Protocol, Sequence, Tuple

from ai_services.chat.session import ChatSession
from ai_services.domain.conversation import normalize_content, validate_history
from ai_services.domain.exceptions import (
    BusinessError,
    InvalidArgumentError,
    ServiceError,
    UnsupportedCapabilityError,
    UnsupportedOperationError,
)
from ai_services.domain.models import TEXT_GENERATION, Candidate, Content, ServiceDescriptor

# 由 Service 自身抛出的调用方错误，不做 ServiceError 包装
CALLER_ERRORS = (InvalidArgumentError, UnsupportedCapabilityError, UnsupportedOperationError)


class GenerativeAiService(Protocol):
    """生成式 AI Service 协议。

    实现者需要提供：
    - get_service_slug / get_service_name: 身份信息，构造后不变。
    - get_capabilities / list_models: 构造时声明的静态能力与模型列表。
    - generate_text: 一次文本生成调用，返回按 Provider 排序的候选列表。
    - start_chat: 开启一个绑定到本 Service 的多轮会话。
    """

    def get_service_slug(self) -> str:
        ...

    def get_service_name(self) -> str:
        ...

    def get_capabilities(self) -> FrozenSet[str]:
        ...

    def has_capability(self, capability: str) -> bool:
        ...

    def list_models(self) -> Tuple[str, ...]:
        ...

    async def generate_text(
        self,
        content: Any,
        model: Optional[str] = None,
        model_params: Optional[Dict[str, Any]] = None,
    ) -> List[Candidate]:
        ...

    def start_chat(
        self,
        history: Optional[Sequence[Any]] = None,
        model: Optional[str] = None,
        model_params: Optional[Dict[str, Any]] = None,
    ) -> ChatSession:
        ...


def ensure_models(descriptor: ServiceDescriptor) -> None:
    """构造阶段检查模型列表，空列表立即失败而不是延迟到调用时。"""

    if not descriptor.available_models:
        raise InvalidArgumentError(
            message=f"No models available for the service {descriptor.slug}. Is it available?",
            service=descriptor.slug,
        )


def ensure_text_generation(descriptor: ServiceDescriptor) -> None:
    if TEXT_GENERATION not in descriptor.capabilities:
        raise UnsupportedCapabilityError(
            message="The service does not support text generation.",
            service=descriptor.slug,
        )


def to_service_error(err: BaseException, slug: str) -> ServiceError:
    """把任意传输/Provider 异常转换为 ServiceError。

    消息优先级：err.message -> err.code -> str(err)。
    """

    message = getattr(err, "message", None) or getattr(err, "code", None) or str(err) or type(err).__name__
    code = err.code if isinstance(err, BusinessError) else None
    return ServiceError(
        message=str(message),
        service=slug,
        cause_code=code,
        cause_status=getattr(err, "http_status", None),
    )


def open_chat(
    service: GenerativeAiService,
    descriptor: ServiceDescriptor,
    history: Optional[Sequence[Any]],
    model: Optional[str],
    model_params: Optional[Dict[str, Any]],
) -> ChatSession:
    """各 Service 变体共享的 start_chat 实现。"""

    ensure_text_generation(descriptor)
    turns: List[Content] = []
    if history:
        validate_history(history)
        normalized = normalize_content(list(history))
        turns = normalized if isinstance(normalized, list) else [normalized]
    return ChatSession(service, history=turns, model=model, model_params=model_params)
