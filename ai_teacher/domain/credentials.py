from typing import Optional, Protocol

from .models import ProviderKind


class CredentialStore(Protocol):
    """API Key 存储协议，按 Provider 独立读写。"""

    def get_key(self, provider: ProviderKind) -> Optional[str]:
        ...

    def set_key(self, provider: ProviderKind, value: str) -> None:
        ...


def has_any_key(store: CredentialStore) -> bool:
    """至少有一个 Provider 配置了非空密钥。"""

    return any(store.get_key(kind) for kind in ProviderKind)
