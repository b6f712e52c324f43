"""语音识别与语音合成的能力协议。

两者都由平台提供，本包只依赖协议；会话控制器负责保证同一时间
最多只有一段识别、一段朗读处于活动状态。
"""

from typing import Callable, Protocol

TranscriptCallback = Callable[[str], None]


class SpeechCapture(Protocol):
    """流式语音识别。"""

    is_active: bool

    def start(self, locale: str, on_transcript: TranscriptCallback) -> None:
        """开始识别；每次得到部分结果时回调 on_transcript。

        可能在任意线程回调。无法启动时抛出 CaptureStartError。
        """

    def stop(self) -> str:
        """结束识别并返回最终文本。"""


class SpeechOutput(Protocol):
    """文本朗读。"""

    is_speaking: bool

    def speak(self, text: str, rate: float, pitch: float) -> None:
        """开始朗读，立即返回。"""

    def stop(self) -> None:
        """立即停止当前朗读。"""
