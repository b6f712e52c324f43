"""Provider 抽象接口与公共 HTTP 流程。

上层会话控制器不直接依赖具体厂商的 HTTP 细节，而是依赖 ProviderClient 协议：

- 每个厂商实现一个 ProviderClient（OpenAIClient、GeminiClient）。
- 公共流程（密钥校验、图片编码、POST、错误分类）放在 HttpProviderClient 中，
  子类只提供请求地址、请求体构造和回复文本提取三个钩子。
"""

from typing import Any, Dict, Optional, Protocol, Tuple

import httpx

from ai_teacher.config.settings import settings
from ai_teacher.domain.exceptions import (
    MissingCredentialError,
    ProviderError,
    TransportError,
    UnparsableResponseError,
)
from ai_teacher.domain.models import OutboundQuery, ProviderKind
from ai_teacher.media.image import encode_jpeg_base64
from ai_teacher.providers.registry import ProviderConfig, get_provider_config

RAW_PREVIEW_LIMIT = 200


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    实现者需要提供：
    - kind: 对应的 ProviderKind，用于日志与分发。
    - chat(query, api_key): 执行一次调用，返回回复文本或抛出业务异常。
    """

    kind: ProviderKind

    def chat(self, query: OutboundQuery, api_key: Optional[str]) -> str:
        ...


class HttpProviderClient:
    """基于 httpx 的单次请求实现，不做重试、缓存与限流。"""

    kind: ProviderKind

    def __init__(self, cfg=settings):
        self._settings = cfg
        self.config: ProviderConfig = get_provider_config(self.kind)

    def chat(self, query: OutboundQuery, api_key: Optional[str]) -> str:
        if not api_key or not api_key.strip():
            raise MissingCredentialError(
                code="MISSING_API_KEY",
                message=f"{self.kind.value} API key not set",
                provider=self.kind.key,
            )
        image_b64 = encode_jpeg_base64(query.attached_image) if query.attached_image is not None else None
        payload = self._build_payload(query, image_b64)
        url, headers, params = self._request_target(api_key.strip())
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(url, json=payload, headers=headers, params=params)
        except httpx.RequestError as e:
            raise TransportError(code="NETWORK_ERROR", message=str(e), provider=self.kind.key)
        return self._parse_response(resp)

    # ---- 子类钩子 ----

    def _request_target(self, api_key: str) -> Tuple[str, Dict[str, str], Dict[str, str]]:
        raise NotImplementedError

    def _build_payload(self, query: OutboundQuery, image_b64: Optional[str]) -> Dict[str, Any]:
        raise NotImplementedError

    def _extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        raise NotImplementedError

    # ---- 辅助方法 ----

    @property
    def base_url(self) -> str:
        base = getattr(self._settings, f"{self.kind.key}_base_url", None) or self.config.base_url
        return base.rstrip("/")

    @property
    def model(self) -> str:
        return getattr(self._settings, f"{self.kind.key}_model", None) or self.config.model

    def _parse_response(self, resp) -> str:
        """成功结构优先；其次是 error.message；都不匹配时保留截断的原始响应。"""

        raw = resp.text or ""
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            text = self._extract_text(data)
            if text is not None:
                return text
            message = dig(data, "error", "message")
            if isinstance(message, str):
                raise ProviderError(
                    code="PROVIDER_ERROR",
                    message=message,
                    http_status=resp.status_code,
                    provider=self.kind.key,
                )
        preview = raw[:RAW_PREVIEW_LIMIT]
        raise UnparsableResponseError(
            code="UNPARSABLE_RESPONSE",
            message=f"Unexpected {self.kind.value} response (HTTP {resp.status_code})",
            raw_preview=preview,
            http_status=resp.status_code,
            provider=self.kind.key,
        )


def dig(data: Any, *path: Any) -> Any:
    """按 key / 下标逐层取值，任一层缺失时返回 None。"""

    cur = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(cur, list) or len(cur) <= step:
                return None
        elif not isinstance(cur, dict) or step not in cur:
            return None
        cur = cur[step]
    return cur
