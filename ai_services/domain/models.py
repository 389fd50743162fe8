"""统一的内容与 Service 描述数据模型。

本模块定义了在不同 Service 之间共享的标准数据结构：

- Part: 一轮对话内容中的一个片段（最少包含 text，也可能携带图片等数据）。
- Content: 一轮对话（role + parts）。
- Candidate: 模型返回的一个候选回答。
- ServiceDescriptor: 外部目录提供的 Service 描述（slug / name / capabilities / models）。

中继传输层与本地推理引擎都只依赖这些模型，
并负责在各自的 JSON 结构和这些模型之间做转换。
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from ai_services.domain.exceptions import InvalidArgumentError


# 能力名称（与服务端目录返回的 capabilities 字段一致）
TEXT_GENERATION = "text-generation"
IMAGE_GENERATION = "image-generation"
MULTIMODAL_INPUT = "multimodal-input"
FUNCTION_CALLING = "function-calling"

ROLE_USER = "user"
ROLE_MODEL = "model"

_SLUG_RE = re.compile(r"^[a-z0-9-]+$")


@dataclass
class Part:
    """内容片段。

    - text: 纯文本内容；非文本片段为 None。
    - data: 其余字段（如 inlineData、fileData），原样保留，核心逻辑不解析。
    """

    text: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Part":
        if not isinstance(payload, Mapping):
            raise InvalidArgumentError(message="Each part must be a Part instance or an object.")
        extra = {k: v for k, v in payload.items() if k != "text"}
        return cls(text=payload.get("text"), data=extra)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(self.data)
        if self.text is not None:
            payload["text"] = self.text
        return payload


@dataclass
class Content:
    """一轮对话内容。

    - role: "user"、"model" 或 Provider 定义的其他角色。
    - parts: 有序片段列表，合法的 Content 至少包含一个片段。
    """

    role: str
    parts: List[Part]

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Content":
        raw_parts = payload.get("parts")
        if raw_parts is None:
            raw_parts = []
        if isinstance(raw_parts, (str, bytes)) or not isinstance(raw_parts, Sequence):
            raise InvalidArgumentError(message="The parts property must be a list of parts.")
        parts = [p if isinstance(p, Part) else Part.from_dict(p) for p in raw_parts]
        return cls(role=payload.get("role") or "", parts=parts)

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "parts": [p.to_dict() for p in self.parts]}

    @property
    def text(self) -> str:
        """所有文本片段以换行拼接后的结果。"""

        return "\n".join(p.text or "" for p in self.parts)


@dataclass
class Candidate:
    """单个候选回答，按 Provider 的排序（最优在前）返回。"""

    content: Content
    finish_reason: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Candidate":
        content = payload.get("content")
        if not isinstance(content, Mapping):
            raise ValueError("Candidate payload is missing the content object")
        extra = {k: v for k, v in payload.items() if k not in ("content", "finishReason")}
        return cls(
            content=Content.from_dict(content),
            finish_reason=payload.get("finishReason"),
            data=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(self.data)
        payload["content"] = self.content.to_dict()
        if self.finish_reason is not None:
            payload["finishReason"] = self.finish_reason
        return payload


def _default_name(slug: str) -> str:
    return " ".join(w.capitalize() for w in re.split(r"[-_]", slug) if w)


@dataclass(frozen=True)
class ServiceDescriptor:
    """外部目录提供的 Service 描述，本包只读取、不负责获取。"""

    slug: str
    name: str = ""
    capabilities: FrozenSet[str] = frozenset()
    available_models: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.slug, str) or not _SLUG_RE.match(self.slug):
            raise InvalidArgumentError(
                message="The service slug must only contain lowercase letters, numbers, and hyphens.",
                slug=self.slug,
            )
        if not self.name:
            object.__setattr__(self, "name", _default_name(self.slug))
        object.__setattr__(self, "capabilities", frozenset(self.capabilities))
        object.__setattr__(self, "available_models", tuple(self.available_models))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ServiceDescriptor":
        """根据服务端目录返回的记录构造描述，兼容 `models` 别名。"""

        models: Iterable[str] = payload.get("available_models")
        if models is None:
            models = payload.get("models") or ()
        return cls(
            slug=payload.get("slug"),
            name=payload.get("name") or "",
            capabilities=frozenset(payload.get("capabilities") or ()),
            available_models=tuple(models),
        )
