"""统一的 Provider 调用入口。

ProviderAdapter 负责：
1. 从注入的 CredentialStore 读取对应 Provider 的密钥。
2. 分发到 OpenAIClient / GeminiClient。
3. 记录结构化日志（不含密钥与正文）。
"""

import logging
import time
from typing import Any, Dict, Mapping, Optional

from ai_teacher.config.settings import settings
from ai_teacher.domain.credentials import CredentialStore
from ai_teacher.domain.exceptions import BusinessError, UnparsableResponseError
from ai_teacher.domain.models import OutboundQuery, ProviderKind
from ai_teacher.infrastructure.logging.logger import logger
from ai_teacher.providers import create_provider
from ai_teacher.providers.base import ProviderClient


class ProviderAdapter:
    def __init__(
        self,
        credentials: CredentialStore,
        clients: Optional[Mapping[ProviderKind, ProviderClient]] = None,
        cfg=settings,
    ):
        self._credentials = credentials
        if clients is None:
            clients = {kind: create_provider(kind, cfg) for kind in ProviderKind}
        self._clients: Dict[ProviderKind, ProviderClient] = dict(clients)

    def ask(self, query: OutboundQuery) -> str:
        """执行一次调用，返回回复文本；失败时抛出 BusinessError 子类。"""

        client = self._clients[query.provider]
        log_ctx = {"provider": query.provider.key, "has_image": query.attached_image is not None}
        started = time.monotonic()
        try:
            reply = client.chat(query, self._credentials.get_key(query.provider))
        except UnparsableResponseError as e:
            self._log(logging.WARNING, "Unparsable provider response", log_ctx, raw_preview=e.raw_preview)
            raise
        except BusinessError as e:
            self._log(logging.WARNING, "Provider call failed", log_ctx, code=e.code, error=e.message)
            raise
        self._log(
            logging.INFO,
            "Provider call succeeded",
            log_ctx,
            elapsed_ms=int((time.monotonic() - started) * 1000),
            reply_chars=len(reply),
        )
        return reply

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
