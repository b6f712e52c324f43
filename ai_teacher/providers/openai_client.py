"""OpenAI (ChatGPT) Provider 适配器。

使用 Chat Completions 端点：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

请求体只包含 model/messages/max_tokens；messages 固定为一条 system 和一条 user。
附带图片时，user.content 变为 text + image_url 两段的列表。
"""

from typing import Any, Dict, List, Optional, Tuple

from ai_teacher.domain.models import OutboundQuery, ProviderKind
from ai_teacher.media.image import jpeg_data_url
from ai_teacher.providers.base import HttpProviderClient, dig


class OpenAIClient(HttpProviderClient):
    """OpenAI Provider 客户端实现。"""

    kind = ProviderKind.OPENAI

    def _request_target(self, api_key: str) -> Tuple[str, Dict[str, str], Dict[str, str]]:
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        return f"{self.base_url}/chat/completions", headers, {}

    def _build_payload(self, query: OutboundQuery, image_b64: Optional[str]) -> Dict[str, Any]:
        """将 OutboundQuery 转成 OpenAI 所需的请求 JSON。"""

        user_content: Any = query.user_text
        if image_b64:
            parts: List[Dict[str, Any]] = [
                {"type": "text", "text": query.user_text},
                {"type": "image_url", "image_url": {"url": jpeg_data_url(image_b64)}},
            ]
            user_content = parts
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": query.system_prompt},
                {"role": "user", "content": user_content},
            ],
            "max_tokens": getattr(self._settings, "max_tokens", None) or self.config.max_tokens,
        }

    def _extract_text(self, data: Dict[str, Any]) -> Optional[str]:
        content = dig(data, "choices", 0, "message", "content")
        return content if isinstance(content, str) else None
