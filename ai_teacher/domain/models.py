"""Provider 侧共享的数据模型。

本模块定义了会话控制器与 Provider 适配层之间传递的标准数据结构：

- ProviderKind: 支持的两个 Provider（OpenAI / Gemini）。
- ProviderCredentials: 单个 Provider 的 API Key。
- OutboundQuery: 每次请求临时构造的查询，不做持久化。

Provider 适配器（如 OpenAIClient）只依赖这些模型，
并负责在各自的 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ProviderKind(str, Enum):
    """支持的 Provider，value 即界面上展示的名称。"""

    OPENAI = "ChatGPT"
    GEMINI = "Gemini"

    @property
    def key(self) -> str:
        """配置与存储里使用的小写标识，如 "openai"。"""

        return self.name.lower()

    @classmethod
    def parse(cls, raw: "str | ProviderKind") -> "ProviderKind":
        """按名称解析，接受 "openai"/"gemini"/"ChatGPT" 等写法，不区分大小写。"""

        if isinstance(raw, ProviderKind):
            return raw
        name = str(raw).strip().lower()
        for kind in cls:
            if name in (kind.key, kind.value.lower()):
                return kind
        raise ValueError(f"Unknown provider: {raw!r}")


@dataclass(frozen=True)
class ProviderCredentials:
    """某个 Provider 的密钥。repr 中不包含密钥本身，避免误打到日志里。"""

    provider: ProviderKind
    secret_key: str

    def __repr__(self) -> str:
        return f"ProviderCredentials(provider={self.provider.key!r}, secret_key='***')"


@dataclass(frozen=True)
class OutboundQuery:
    """一次外发请求。

    - user_text: 用户问题（或拍照作业的固定提示）。
    - system_prompt: 按年龄生成的安全提示词。
    - attached_image: 可选的图片原始字节，发送前会压缩为 JPEG。
    - provider: 目标 Provider。
    """

    user_text: str
    system_prompt: str
    provider: ProviderKind
    attached_image: Optional[bytes] = None
