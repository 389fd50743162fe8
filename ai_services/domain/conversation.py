"""内容归一化与对话校验。

调用方传入的 content 可以是：

- 纯字符串（单条用户提示）；
- Part 列表（单轮用户内容的多个片段）；
- 单个 Content（或带 role/parts 的 dict）；
- Content 列表（完整的多轮内容）。

带类型的 Content / Part 是主要入口；对 dict/list 的形状判断只是为了兼容
来自 JSON 的无类型输入。本模块全部为纯函数，没有 I/O。
"""

from typing import Any, List, Mapping, Sequence, Union

from ai_services.domain.exceptions import InvalidArgumentError
from ai_services.domain.models import ROLE_USER, Content, Part

ContentInput = Union[str, Content, Part, Mapping[str, Any], Sequence[Any]]


def looks_like_content(item: Any) -> bool:
    """判断单个元素是否是一轮对话（而不是一个片段）。"""

    if isinstance(item, Content):
        return True
    if isinstance(item, Mapping):
        return "role" in item or "parts" in item
    return False


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _to_part(item: Any) -> Part:
    if isinstance(item, Part):
        return item
    if isinstance(item, Mapping):
        return Part.from_dict(item)
    raise InvalidArgumentError(message="Each part must be a Part instance or an object.")


def _to_content(item: Any) -> Content:
    if isinstance(item, Content):
        return item
    return Content.from_dict(item)


def normalize_content(content: ContentInput) -> Union[Content, List[Content]]:
    """把调用方的各种 content 形式转换为统一的 Content。

    Content 列表原样（逐项转换为 Content）返回，
    是否满足历史约束由下游负责校验。
    """

    if isinstance(content, str):
        return Content(role=ROLE_USER, parts=[Part(text=content)])

    if isinstance(content, Content):
        return content

    if isinstance(content, Part):
        return Content(role=ROLE_USER, parts=[content])

    if _is_sequence(content):
        if not content:
            raise InvalidArgumentError(message="The content list must not be empty.")
        # 可能是多轮 Content，也可能是单轮的 parts
        if looks_like_content(content[0]):
            return [_to_content(item) for item in content]
        return Content(role=ROLE_USER, parts=[_to_part(item) for item in content])

    if isinstance(content, Mapping) and content.get("role") and content.get("parts") is not None:
        return Content.from_dict(content)

    raise InvalidArgumentError(
        message="The value must be a string, a parts object, or a content object."
    )


def validate_history(history: Sequence[Any]) -> None:
    """校验多轮对话历史，遇到第一个违规项即抛出 InvalidArgumentError。"""

    for index, item in enumerate(history):
        if isinstance(item, Content):
            role, parts = item.role, item.parts
        elif isinstance(item, Mapping):
            role, parts = item.get("role"), item.get("parts")
        else:
            role, parts = None, None

        if not role or parts is None:
            raise InvalidArgumentError(
                message="The content object must have a role and parts properties.",
                index=index,
            )
        if index == 0 and role != ROLE_USER:
            raise InvalidArgumentError(
                message="The first content object in the history must be user content.",
                index=index,
            )
        if len(parts) == 0:
            raise InvalidArgumentError(
                message="Each Content instance must have at least one part.",
                index=index,
            )


def validate_content(content: Any) -> None:
    """generate_text 的轻量校验：只检查结构，不检查顺序和首轮角色。"""

    if content is None or (isinstance(content, (str, list, tuple)) and not content):
        raise InvalidArgumentError(message="The content argument is required to generate content.")
    if isinstance(content, (str, Content, Part)) or _is_sequence(content):
        return
    if isinstance(content, Mapping):
        if not content.get("role") or content.get("parts") is None:
            raise InvalidArgumentError(
                message="The content object must have a role and parts properties."
            )
        return
    raise InvalidArgumentError(
        message="The content argument must be a string, an object, or an array of objects."
    )


def content_to_payload(content: Any) -> Any:
    """把 content 序列化为可 JSON 编码的结构，供中继请求使用。"""

    if isinstance(content, (Content, Part)):
        return content.to_dict()
    if _is_sequence(content):
        return [content_to_payload(item) for item in content]
    if isinstance(content, Mapping):
        return {k: content_to_payload(v) for k, v in content.items()}
    return content


def join_part_texts(parts: Sequence[Any]) -> str:
    """把片段文本以换行拼接，缺失的 text 视为空字符串。"""

    return "\n".join(_to_part(p).text or "" for p in parts)
