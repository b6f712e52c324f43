from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from .models import ProviderKind

VOICE_RATE_RANGE = (0.0, 1.0)
VOICE_PITCH_RANGE = (0.5, 2.0)


def _clamp(value: float, bounds: tuple) -> float:
    low, high = bounds
    return max(low, min(high, float(value)))


class SessionPhase(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    SENDING = "sending"


@dataclass(frozen=True)
class Message:
    text: str
    is_from_user: bool
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class ConversationState:
    """单个会话的可变状态，只允许在控制线程内修改。"""

    selected_provider: ProviderKind = ProviderKind.GEMINI
    voice_rate: float = 0.5
    voice_pitch: float = 1.0
    user_age_label: str = ""
    messages: List[Message] = field(default_factory=list)
    is_busy: bool = False
    last_error: Optional[str] = None
    live_transcript: str = ""
    phase: SessionPhase = SessionPhase.IDLE

    def __post_init__(self) -> None:
        self.voice_rate = _clamp(self.voice_rate, VOICE_RATE_RANGE)
        self.voice_pitch = _clamp(self.voice_pitch, VOICE_PITCH_RANGE)

    def set_voice(self, rate: Optional[float] = None, pitch: Optional[float] = None) -> None:
        if rate is not None:
            self.voice_rate = _clamp(rate, VOICE_RATE_RANGE)
        if pitch is not None:
            self.voice_pitch = _clamp(pitch, VOICE_PITCH_RANGE)

    def clear(self) -> None:
        # provider / voice / age 设置保留
        self.messages.clear()
        self.last_error = None
