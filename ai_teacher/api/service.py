"""对外 API 服务模块。

提供简化的函数接口供上层应用（界面、脚本）调用。
"""

from typing import Any, Dict, Optional

from ai_teacher.config.settings import settings
from ai_teacher.domain.credentials import CredentialStore, has_any_key
from ai_teacher.domain.exceptions import ValidationError
from ai_teacher.domain.models import OutboundQuery, ProviderKind
from ai_teacher.infrastructure.logging.logger import logger
from ai_teacher.infrastructure.storage.credential_store import JsonCredentialStore, seed_from_settings
from ai_teacher.prompts import build_system_prompt, load_homework_prompt
from ai_teacher.providers.adapter import ProviderAdapter
from ai_teacher.session.controller import ConversationController
from ai_teacher.speech.interfaces import SpeechCapture, SpeechOutput
from ai_teacher.speech.scripted import LoggingSpeechOutput, ScriptedSpeechCapture


_store: Optional[CredentialStore] = None
_adapter: Optional[ProviderAdapter] = None


def get_default_store() -> CredentialStore:
    """获取默认的密钥存储（单例），首次创建时用环境变量补齐缺失的密钥。"""
    global _store
    if _store is None:
        _store = seed_from_settings(JsonCredentialStore(root=settings.storage_root))
    return _store


def get_default_adapter() -> ProviderAdapter:
    """获取默认的 ProviderAdapter 实例（单例）。"""
    global _adapter
    if _adapter is None:
        _adapter = ProviderAdapter(get_default_store())
    return _adapter


def save_api_key(provider: "str | ProviderKind", key: str) -> None:
    """保存某个 Provider 的密钥，传入空字符串即清除。"""
    get_default_store().set_key(ProviderKind.parse(provider), key)


def has_any_api_key() -> bool:
    return has_any_key(get_default_store())


def create_controller(
    capture: Optional[SpeechCapture] = None,
    output: Optional[SpeechOutput] = None,
) -> ConversationController:
    """创建一个会话控制器；未提供语音能力时使用无设备实现。"""
    return ConversationController(
        adapter=get_default_adapter(),
        capture=capture or ScriptedSpeechCapture(),
        output=output or LoggingSpeechOutput(),
    )


def ask(
    question: str,
    provider: "Optional[str | ProviderKind]" = None,
    age: str = "",
    image: Optional[bytes] = None,
) -> Dict[str, Any]:
    """单次问答，不经过会话状态。

    Args:
        question: 用户问题；带图片且问题为空时使用作业提示词
        provider: Provider 名称（可选，默认取配置）
        age: 孩子的年龄描述
        image: 图片原始字节（可选）

    Returns:
        包含 provider、question 与 reply 的字典

    Raises:
        各种 domain.exceptions 中定义的异常
    """
    kind = ProviderKind.parse(provider or settings.default_provider)
    text = question.strip() or (load_homework_prompt() if image is not None else "")
    if not text:
        raise ValidationError(code="EMPTY_QUESTION", message="question must not be blank")
    query = OutboundQuery(
        user_text=text,
        system_prompt=build_system_prompt(age),
        provider=kind,
        attached_image=image,
    )
    try:
        reply = get_default_adapter().ask(query)
    except Exception as e:
        logger.error(f"Ask failed: {e}", extra={"extra": {
            "provider": kind.key,
            "error": str(e),
        }})
        raise
    return {"provider": kind.value, "question": text, "reply": reply}
