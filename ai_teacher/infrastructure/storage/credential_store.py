import json
import os
from pathlib import Path
from typing import Dict, Optional
from uuid import uuid4

from ai_teacher.config.settings import settings
from ai_teacher.domain.credentials import CredentialStore
from ai_teacher.domain.exceptions import StoreError
from ai_teacher.domain.models import ProviderKind


def storage_key(provider: ProviderKind) -> str:
    """存储中使用的键名，如 "openai_api_key"。"""
    return f"{provider.key}_api_key"


class InMemoryCredentialStore(CredentialStore):
    def __init__(self, initial: Optional[Dict[ProviderKind, str]] = None):
        self._values: Dict[str, str] = {}
        for kind, value in (initial or {}).items():
            self.set_key(kind, value)

    def get_key(self, provider: ProviderKind) -> Optional[str]:
        return self._values.get(storage_key(provider))

    def set_key(self, provider: ProviderKind, value: str) -> None:
        self._values[storage_key(provider)] = (value or "").strip()


class JsonCredentialStore(CredentialStore):
    """把两个 Provider 的密钥保存在 {storage_root}/credentials.json。

    写入使用临时文件 + os.replace，避免中途失败留下半个文件。
    允许写入空字符串以清除某个密钥。
    """

    def __init__(self, root: str | Path | None = None):
        self._root = Path(root or settings.storage_root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._path = self._root / "credentials.json"

    def get_key(self, provider: ProviderKind) -> Optional[str]:
        return self._read().get(storage_key(provider))

    def set_key(self, provider: ProviderKind, value: str) -> None:
        data = self._read()
        data[storage_key(provider)] = (value or "").strip()
        self._write(data)

    def _read(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(code="STORE_READ_ERROR", message=str(e))
        if not isinstance(data, dict):
            raise StoreError(code="STORE_READ_ERROR", message=f"{self._path} is not a mapping")
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _write(self, data: Dict[str, str]) -> None:
        tmp_path = self._root / f"credentials.{uuid4().hex}.json.tmp"
        try:
            tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StoreError(code="STORE_WRITE_ERROR", message=str(e))


def seed_from_settings(store: CredentialStore, cfg=settings) -> CredentialStore:
    """用环境变量 / 配置文件中的密钥填充尚未设置的条目。"""

    for kind in ProviderKind:
        value = getattr(cfg, f"{kind.key}_api_key", None)
        if value and not store.get_key(kind):
            store.set_key(kind, value)
    return store
