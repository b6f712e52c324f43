"""会话状态变更消息。

控制器的所有状态修改都以这些消息的形式进入 ConversationController._apply，
后台线程（HTTP 调用、语音识别回调）只投递消息，不直接改状态。
"""

from dataclasses import dataclass
from typing import Optional, Union

from ai_teacher.domain.models import ProviderKind


@dataclass(frozen=True)
class CaptureStarted:
    pass


@dataclass(frozen=True)
class CaptureFailed:
    error: str


@dataclass(frozen=True)
class TranscriptUpdated:
    text: str


@dataclass(frozen=True)
class CaptureStopped:
    final_transcript: str


@dataclass(frozen=True)
class RequestIssued:
    user_text: str


@dataclass(frozen=True)
class ReplyReceived:
    generation: int
    text: str


@dataclass(frozen=True)
class RequestFailed:
    generation: int
    error: str


@dataclass(frozen=True)
class ProviderSwitched:
    provider: ProviderKind


@dataclass(frozen=True)
class AgeSubmitted:
    label: str


@dataclass(frozen=True)
class VoiceChanged:
    rate: Optional[float] = None
    pitch: Optional[float] = None


@dataclass(frozen=True)
class ConversationReset:
    pass


@dataclass(frozen=True)
class ErrorDismissed:
    pass


SessionEvent = Union[
    CaptureStarted,
    CaptureFailed,
    TranscriptUpdated,
    CaptureStopped,
    RequestIssued,
    ReplyReceived,
    RequestFailed,
    ProviderSwitched,
    AgeSubmitted,
    VoiceChanged,
    ConversationReset,
    ErrorDismissed,
]
