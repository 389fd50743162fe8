"""多轮对话会话。"""

from ai_services.chat.session import ChatSession

__all__ = ["ChatSession"]
