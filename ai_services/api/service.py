"""对外 API 服务模块。

提供简化的函数接口供上层应用调用：进程内共享一个按配置构造的
ServiceRegistry，调用方只需要传入服务端目录返回的 Service 描述。
"""

from typing import Any, Dict, List, Mapping, Optional, Union

from ai_services.config.settings import settings
from ai_services.domain.models import Candidate, ServiceDescriptor
from ai_services.infrastructure.local_engine.openai_compat import OpenAICompatibleEngine
from ai_services.infrastructure.logging.logger import logger
from ai_services.infrastructure.relay.http_relay import HttpRelayTransport
from ai_services.services.base import GenerativeAiService
from ai_services.services.registry import ServiceRegistry

Descriptor = Union[ServiceDescriptor, Mapping[str, Any]]

_registry: Optional[ServiceRegistry] = None


def get_default_registry() -> ServiceRegistry:
    """获取默认的 ServiceRegistry 实例（单例）。"""
    global _registry
    if _registry is None:
        _registry = ServiceRegistry(
            transport=HttpRelayTransport(settings),
            local_engine=OpenAICompatibleEngine(settings),
        )
    return _registry


def reset_default_registry() -> None:
    """丢弃默认注册表，下次调用时重新构造（主要用于测试）。"""
    global _registry
    _registry = None


def get_service(descriptor: Descriptor) -> GenerativeAiService:
    """根据 Service 描述获取（必要时构造）Service 实例。"""
    return get_default_registry().get(descriptor)


async def generate_text(
    descriptor: Descriptor,
    content: Any,
    model: Optional[str] = None,
    model_params: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    """执行一次文本生成，并以 JSON 结构返回候选列表。

    Args:
        descriptor: Service 描述（slug、name、capabilities、available_models）
        content: 字符串、parts、Content 或 Content 列表
        model: 模型 slug（可选）
        model_params: 模型参数（可选，原样透传）

    Returns:
        候选列表，每项形如 {"content": {"role": ..., "parts": [...]}}

    Raises:
        各种 domain.exceptions 中定义的异常
    """
    service = get_service(descriptor)
    try:
        candidates: List[Candidate] = await service.generate_text(
            content, model=model, model_params=model_params
        )
    except Exception as e:
        logger.error(f"generate_text failed: {e}", extra={"extra": {
            "service": service.get_service_slug(),
            "error": str(e),
        }})
        raise
    return [c.to_dict() for c in candidates]
