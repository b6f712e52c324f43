"""Gemini Provider 适配器。

使用 generateContent 端点：
- URL: {base_url}/models/{model}:generateContent
- 认证: 查询参数 key=<api_key>

Gemini 没有独立的 system 角色，这里把系统提示词和用户问题拼接成一个 text part：
"<system prompt>\\n\\nUser Question: <user text>"。附带图片时追加一个 inlineData part。
"""

from typing import Any, Dict, List, Optional, Tuple

from ai_teacher.domain.models import OutboundQuery, ProviderKind
from ai_teacher.media.image import JPEG_MIME_TYPE
from ai_teacher.providers.base import HttpProviderClient, dig

USER_QUESTION_LABEL = "User Question:"


class GeminiClient(HttpProviderClient):
    """Gemini Provider 客户端实现。"""

    kind = ProviderKind.GEMINI

    def _request_target(self, api_key: str) -> Tuple[str, Dict[str, str], Dict[str, str]]:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        return url, {"Content-Type": "application/json"}, {"key": api_key}

    def _build_payload(self, query: OutboundQuery, image_b64: Optional[str]) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = [
            {"text": f"{query.system_prompt}\n\n{USER_QUESTION_LABEL} {query.user_text}"},
        ]
        if image_b64:
            parts.append({"inlineData": {"mimeType": JPEG_MIME_TYPE, "data": image_b64}})
        return {"contents": [{"parts": parts}]}

    def _extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        text = dig(data, "candidates", 0, "content", "parts", 0, "text")
        return text if isinstance(text, str) else None
