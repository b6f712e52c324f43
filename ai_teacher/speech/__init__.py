"""语音能力：协议 (interfaces) 与无设备实现 (scripted)。"""

from ai_teacher.speech.interfaces import SpeechCapture, SpeechOutput

__all__ = ["SpeechCapture", "SpeechOutput"]
