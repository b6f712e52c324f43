"""JSON 行日志。

每条记录写成一行 JSON 到 {log_dir}/ai_teacher.log，结构化字段通过
extra={"extra": {...}} 传入。API Key 永远不应出现在日志里：
httpx 的异常信息可能带着 ?key=... 的 Gemini 地址，写出前统一打码。
"""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ai_teacher.config.settings import settings

_SECRET_PATTERNS = [
    (re.compile(r"(Bearer\s+)\S+", re.IGNORECASE), r"\1***"),
    (re.compile(r"([?&]key=)[^&\s\"']+"), r"\1***"),
    (re.compile(r"\bsk-[A-Za-z0-9_\-]{6,}"), "sk-***"),
    (re.compile(r"\bAIza[0-9A-Za-z_\-]{10,}"), "AIza***"),
]


def mask_secrets(text: str) -> str:
    for pattern, repl in _SECRET_PATTERNS:
        text = pattern.sub(repl, text)
    return text


def _mask_value(value: Any) -> Any:
    if isinstance(value, str):
        return mask_secrets(value)
    return value


class JsonLineFormatter(logging.Formatter):
    def __init__(self, redact_content: bool = False):
        super().__init__()
        self._redact_content = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = mask_secrets(record.getMessage() or "")
        if self._redact_content:
            msg = msg[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update({k: _mask_value(v) for k, v in extra.items()})
        if record.exc_info:
            payload["exc"] = mask_secrets(self.formatException(record.exc_info))
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(cfg=settings) -> logging.Logger:
    logger = logging.getLogger("ai_teacher")
    logger.setLevel(getattr(logging, str(cfg.log_level).upper(), logging.INFO))
    if logger.handlers:
        return logger
    log_dir = Path(cfg.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / "ai_teacher.log", encoding="utf-8")
    fh.setFormatter(JsonLineFormatter(redact_content=cfg.log_redact_content))
    logger.addHandler(fh)
    return logger


logger = setup_logger()
