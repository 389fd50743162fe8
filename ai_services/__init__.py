"""AI Services 顶层包。

该包为多个异构的生成式 AI Service（服务端中继的云端 API、端侧推理引擎）
提供统一的客户端抽象：统一的内容模型、能力检查、文本生成
以及多轮对话会话。
"""

from ai_services.chat.session import ChatSession
from ai_services.domain.models import Candidate, Content, Part, ServiceDescriptor
from ai_services.services import LocalInferenceService, RelayService, ServiceRegistry

__all__ = [
    "Candidate",
    "ChatSession",
    "Content",
    "LocalInferenceService",
    "Part",
    "RelayService",
    "ServiceDescriptor",
    "ServiceRegistry",
]
