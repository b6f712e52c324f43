"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口与公共 HTTP 流程 (base)。
- 维护 Provider 默认端点与模型 (registry)。
- 提供各厂商的具体实现 (openai_client、gemini_client)。
- 按 Provider 分发并读取密钥的统一入口 (adapter)。
"""

from typing import Optional

from ai_teacher.config.settings import settings
from ai_teacher.domain.models import ProviderKind
from ai_teacher.providers.base import ProviderClient
from ai_teacher.providers.gemini_client import GeminiClient
from ai_teacher.providers.openai_client import OpenAIClient


def create_provider(name: "Optional[str | ProviderKind]" = None, cfg=None) -> ProviderClient:
    """根据名称创建 Provider 实例，默认取配置中的 provider。"""

    cfg = cfg or settings
    kind = ProviderKind.parse(name or getattr(cfg, "default_provider", "gemini"))
    if kind is ProviderKind.OPENAI:
        return OpenAIClient(cfg)
    return GeminiClient(cfg)
