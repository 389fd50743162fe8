"""生成式 AI Service 层。

该包下的模块负责：
- 定义 Service 抽象接口与公共校验 (base)。
- 中继 Service 与本地推理 Service 两种实现 (relay_service、local_service)。
- 按 slug 缓存 Service 实例 (registry)。
"""

from ai_services.services.base import GenerativeAiService
from ai_services.services.local_service import LOCAL_SERVICE_SLUG, LocalInferenceService
from ai_services.services.registry import ServiceRegistry
from ai_services.services.relay_service import RelayService

__all__ = [
    "GenerativeAiService",
    "LOCAL_SERVICE_SLUG",
    "LocalInferenceService",
    "RelayService",
    "ServiceRegistry",
]
