"""Service 注册表。

以 slug 为键缓存已构造的 Service 实例：

- 某个 slug 第一次出现时按 slug 选择变体（"browser" -> LocalInferenceService，
  其余 -> RelayService）并缓存。
- 之后同一 slug 的调用直接返回缓存实例，忽略描述中的差异（先注册者生效）。
- 缓存不设上限、不淘汰，生命周期与注册表对象相同。

注册表需要显式构造并传递给使用方，测试中每个用例都可以使用新的注册表。
"""

from typing import Any, Dict, List, Mapping, Union

from ai_services.domain.models import ServiceDescriptor
from ai_services.infrastructure.local_engine.openai_compat import LocalEngine
from ai_services.infrastructure.logging.logger import logger
from ai_services.infrastructure.relay.http_relay import RelayTransport
from ai_services.services.base import GenerativeAiService
from ai_services.services.local_service import LOCAL_SERVICE_SLUG, LocalInferenceService
from ai_services.services.relay_service import RelayService


class ServiceRegistry:
    """slug -> Service 实例的缓存。"""

    def __init__(self, transport: RelayTransport, local_engine: LocalEngine):
        self._transport = transport
        self._local_engine = local_engine
        self._services: Dict[str, GenerativeAiService] = {}

    def get(self, descriptor: Union[ServiceDescriptor, Mapping[str, Any]]) -> GenerativeAiService:
        """根据描述获取 Service 实例；构造失败时不会写入缓存。"""

        if not isinstance(descriptor, ServiceDescriptor):
            descriptor = ServiceDescriptor.from_dict(descriptor)

        service = self._services.get(descriptor.slug)
        if service is None:
            service = self._create(descriptor)
            self._services[descriptor.slug] = service
            logger.info(
                "service registered",
                extra={"extra": {"service": descriptor.slug, "variant": type(service).__name__}},
            )
        return service

    def has(self, slug: str) -> bool:
        return slug in self._services

    def slugs(self) -> List[str]:
        return list(self._services)

    def __contains__(self, slug: object) -> bool:
        return slug in self._services

    def __len__(self) -> int:
        return len(self._services)

    def _create(self, descriptor: ServiceDescriptor) -> GenerativeAiService:
        if descriptor.slug == LOCAL_SERVICE_SLUG:
            return LocalInferenceService(descriptor, self._local_engine)
        return RelayService(descriptor, self._transport)
