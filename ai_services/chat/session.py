"""多轮对话会话。

ChatSession 绑定到一个 Service 实例（共享引用），独占维护对话历史。
每次 send_message 都是一次原子状态转换：成功时用户内容与模型回复
一起追加到历史；失败时历史保持调用前的状态，调用方可以直接重试。

同一个会话不支持并发调用 send_message：两次调用交错时历史的结果
是未定义的，内部不加锁。
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ai_services.domain.conversation import ContentInput, normalize_content, validate_history
from ai_services.domain.exceptions import ServiceError
from ai_services.domain.models import Content
from ai_services.infrastructure.logging.logger import logger

if TYPE_CHECKING:
    # 仅在类型检查时导入，避免运行时循环依赖
    from ai_services.services.base import GenerativeAiService


class ChatSession:
    """与某个 Service 的一次多轮对话。

    - service: 发起调用的 Service，多个会话可以共享同一个实例。
    - model / model_params: 每次调用原样透传给 Service。
    - history: 有序的 Content 列表，只由会话自身修改。
    """

    def __init__(
        self,
        service: "GenerativeAiService",
        history: Optional[List[Content]] = None,
        model: Optional[str] = None,
        model_params: Optional[Dict[str, Any]] = None,
    ):
        self.service = service
        self._model = model
        self._model_params = model_params
        self._history: List[Content] = list(history or [])

    @property
    def model(self) -> Optional[str]:
        return self._model

    @property
    def model_params(self) -> Optional[Dict[str, Any]]:
        return self._model_params

    def get_history(self) -> List[Content]:
        """返回当前历史的浅拷贝，调用方应视为只读。"""

        return list(self._history)

    async def send_message(self, content: ContentInput) -> Content:
        """发送一条消息并返回模型回复。

        新内容追加后的历史必须通过 validate_history（首轮为 user、每轮至少一个片段）。
        只取第一条候选作为回复；候选为空时视为 Service 错误，历史不变。
        """

        normalized = normalize_content(content)
        new_turns = normalized if isinstance(normalized, list) else [normalized]

        contents = [*self._history, *new_turns]
        validate_history(contents)
        candidates = await self.service.generate_text(
            contents,
            model=self._model,
            model_params=self._model_params,
        )
        if not candidates:
            raise ServiceError(
                code="EMPTY_CANDIDATES",
                message="The service returned no candidates.",
                service=self.service.get_service_slug(),
            )
        response_content = candidates[0].content

        self._history = [*self._history, *new_turns, response_content]
        logger.debug(
            "chat turn appended",
            extra={"extra": {
                "service": self.service.get_service_slug(),
                "history_length": len(self._history),
            }},
        )
        return response_content
