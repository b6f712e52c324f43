"""Provider 与模型配置。

集中维护两个 Provider 的默认端点与模型名，settings 中的同名字段可以覆盖：

- openai_base_url / openai_model
- gemini_base_url / gemini_model
"""

from dataclasses import dataclass
from typing import Mapping

from ai_teacher.domain.models import ProviderKind


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    kind: ProviderKind
    base_url: str
    model: str
    max_tokens: int


# OpenAI Chat Completions
OPENAI_CONFIG = ProviderConfig(
    kind=ProviderKind.OPENAI,
    base_url="https://api.openai.com/v1",
    model="gpt-4.1-mini",
    max_tokens=300,
)

# Gemini generateContent（不支持 max_tokens 字段，此处仅作记录）
GEMINI_CONFIG = ProviderConfig(
    kind=ProviderKind.GEMINI,
    base_url="https://generativelanguage.googleapis.com/v1beta",
    model="gemini-2.5-flash",
    max_tokens=300,
)


PROVIDER_REGISTRY: Mapping[ProviderKind, ProviderConfig] = {
    ProviderKind.OPENAI: OPENAI_CONFIG,
    ProviderKind.GEMINI: GEMINI_CONFIG,
}


def get_provider_config(name: "str | ProviderKind") -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    try:
        kind = ProviderKind.parse(name)
    except ValueError:
        raise KeyError(f"Unknown provider: {name!r}")
    return PROVIDER_REGISTRY[kind]
