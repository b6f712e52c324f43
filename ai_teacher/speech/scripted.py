"""不依赖音频设备的语音能力实现，用于演示脚本与测试。"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ai_teacher.domain.exceptions import CaptureStartError
from ai_teacher.infrastructure.logging.logger import logger
from ai_teacher.speech.interfaces import TranscriptCallback


class ScriptedSpeechCapture:
    """把预设文本逐词作为部分结果回调，stop() 时返回完整文本。"""

    def __init__(self, transcript: str = "", fail_reason: Optional[str] = None):
        self.transcript = transcript
        self.fail_reason = fail_reason
        self.is_active = False
        self.started_locales: List[str] = []

    def start(self, locale: str, on_transcript: TranscriptCallback) -> None:
        if self.fail_reason:
            raise CaptureStartError(code="CAPTURE_START_FAILED", message=self.fail_reason)
        self.started_locales.append(locale)
        self.is_active = True
        on_transcript("")
        words = self.transcript.split()
        for i in range(1, len(words) + 1):
            on_transcript(" ".join(words[:i]))

    def stop(self) -> str:
        self.is_active = False
        return self.transcript


@dataclass
class Utterance:
    text: str
    rate: float
    pitch: float


@dataclass
class LoggingSpeechOutput:
    """记录每次朗读请求并写日志，不产生声音。"""

    utterances: List[Utterance] = field(default_factory=list)
    stop_count: int = 0
    is_speaking: bool = False

    def speak(self, text: str, rate: float, pitch: float) -> None:
        self.utterances.append(Utterance(text=text, rate=rate, pitch=pitch))
        self.is_speaking = True
        logger.log(logging.INFO, "Speak", extra={"extra": {"chars": len(text), "rate": rate, "pitch": pitch}})

    def stop(self) -> None:
        self.stop_count += 1
        self.is_speaking = False

    @property
    def last_text(self) -> Optional[str]:
        return self.utterances[-1].text if self.utterances else None
