"""会话控制器。

把「语音识别 → 请求 Provider → 展示 → 朗读」串成一个小状态机：

    IDLE --start_capture--> CAPTURING --stop_capture--> IDLE --submit_text--> SENDING
    SENDING --回复成功/失败--> IDLE

并发模型：
- 所在的 asyncio 事件循环线程就是唯一的控制线程，所有状态修改都经过 _apply。
- Provider 调用通过 asyncio.to_thread 在工作线程执行，完成后在循环线程投递
  ReplyReceived / RequestFailed；语音识别的部分结果用 call_soon_threadsafe 投递。
- 不限制并发请求数，is_busy 以最后到达的完成消息为准；也不取消进行中的请求。
  reset 之后才到达的旧回复仍会追加到（已清空的）历史中，只记一条日志。
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Set

from ai_teacher.config.settings import settings
from ai_teacher.domain.conversation import ConversationState, Message, SessionPhase
from ai_teacher.domain.exceptions import BusinessError, CaptureStartError
from ai_teacher.domain.models import OutboundQuery, ProviderKind
from ai_teacher.infrastructure.logging.logger import logger
from ai_teacher.prompts import build_system_prompt, load_homework_prompt, load_welcome_message
from ai_teacher.providers.adapter import ProviderAdapter
from ai_teacher.session.events import (
    AgeSubmitted,
    CaptureFailed,
    CaptureStarted,
    CaptureStopped,
    ConversationReset,
    ErrorDismissed,
    ProviderSwitched,
    ReplyReceived,
    RequestFailed,
    RequestIssued,
    SessionEvent,
    TranscriptUpdated,
    VoiceChanged,
)
from ai_teacher.speech.interfaces import SpeechCapture, SpeechOutput


def provider_announcement(provider: ProviderKind) -> str:
    return f"I am the {provider.value} AI"


class ConversationController:
    def __init__(
        self,
        adapter: ProviderAdapter,
        capture: SpeechCapture,
        output: SpeechOutput,
        cfg=settings,
        state: Optional[ConversationState] = None,
    ):
        self._adapter = adapter
        self._capture = capture
        self._output = output
        self._locale = getattr(cfg, "speech_locale", "en-US")
        self.state = state or ConversationState(
            selected_provider=ProviderKind.parse(getattr(cfg, "default_provider", "gemini")),
            voice_rate=getattr(cfg, "voice_rate", 0.5),
            voice_pitch=getattr(cfg, "voice_pitch", 1.0),
        )
        self._generation = 0
        self._in_flight = 0
        self._tasks: Set[asyncio.Task] = set()

    # ---- 用户意图 ----

    def start_capture(self) -> bool:
        """开始语音识别，失败时只设置 last_error，不进入 CAPTURING。"""

        if self._capture.is_active:
            self._capture.stop()
        loop = asyncio.get_running_loop()

        def on_transcript(text: str) -> None:
            loop.call_soon_threadsafe(self._apply, TranscriptUpdated(text))

        try:
            self._capture.start(self._locale, on_transcript)
        except CaptureStartError as e:
            self._apply(CaptureFailed(f"Failed to start recording: {e.message}"))
            return False
        self._apply(CaptureStarted())
        return True

    def stop_capture(self) -> Optional[asyncio.Task]:
        """结束识别；最终文本非空时立即提交。"""

        if self.state.phase is not SessionPhase.CAPTURING and not self._capture.is_active:
            return None
        final = self._capture.stop() or self.state.live_transcript
        self._apply(CaptureStopped(final))
        return self.submit_text(final)

    def toggle_recording(self) -> Optional[asyncio.Task]:
        if self.state.phase is SessionPhase.CAPTURING:
            return self.stop_capture()
        self.start_capture()
        return None

    def submit_text(self, text: str) -> Optional[asyncio.Task]:
        """提交用户问题。空白文本直接忽略，不追加消息也不发请求。"""

        if not text or not text.strip():
            return None
        return self._send(text, attached_image=None)

    def attach_image(self, image_bytes: bytes) -> asyncio.Task:
        """拍照作业：用固定的作业提示词代替用户问题，其余流程与文本一致。"""

        return self._send(load_homework_prompt(), attached_image=image_bytes)

    def switch_provider(self, provider: "str | ProviderKind") -> bool:
        """切换 Provider，实际发生变化时追加一条播报消息。"""

        kind = ProviderKind.parse(provider)
        if kind is self.state.selected_provider:
            return False
        self._apply(ProviderSwitched(kind))
        return True

    def submit_age(self, label: str) -> None:
        self._apply(AgeSubmitted(label))

    def set_voice(self, rate: Optional[float] = None, pitch: Optional[float] = None) -> None:
        self._apply(VoiceChanged(rate=rate, pitch=pitch))

    def reset(self) -> None:
        """清空历史与错误，停止朗读并播放欢迎语；不影响进行中的请求。"""

        self._apply(ConversationReset())
        self._output.stop()
        self._speak(load_welcome_message())

    def dismiss_error(self) -> None:
        self._apply(ErrorDismissed())

    async def wait_idle(self) -> None:
        """等待当前所有请求完成。"""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ---- 内部流程 ----

    def _send(self, text: str, attached_image: Optional[bytes]) -> asyncio.Task:
        query = OutboundQuery(
            user_text=text,
            system_prompt=build_system_prompt(self.state.user_age_label),
            provider=self.state.selected_provider,
            attached_image=attached_image,
        )
        # 先追加用户消息，再发请求
        self._apply(RequestIssued(text))
        task = asyncio.get_running_loop().create_task(self._run_request(query, self._generation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_request(self, query: OutboundQuery, generation: int) -> None:
        try:
            reply = await asyncio.to_thread(self._adapter.ask, query)
        except BusinessError as e:
            self._apply(RequestFailed(generation, f"AI Error: {e.message}"))
            return
        except Exception as e:  # noqa: BLE001 - 任务边界，统一转换为用户可见错误
            logger.exception("Unexpected provider failure")
            self._apply(RequestFailed(generation, f"AI Error: {e}"))
            return
        self._apply(ReplyReceived(generation, reply))
        self._speak(reply)

    def _speak(self, text: str) -> None:
        if self._output.is_speaking:
            self._output.stop()
        self._output.speak(text, self.state.voice_rate, self.state.voice_pitch)

    def _apply(self, event: SessionEvent) -> None:
        """唯一的状态修改入口，只在事件循环线程调用。"""

        state = self.state
        if isinstance(event, CaptureStarted):
            state.live_transcript = ""
            state.phase = SessionPhase.CAPTURING
        elif isinstance(event, CaptureFailed):
            state.last_error = event.error
            self._log(logging.WARNING, "Capture start failed", error=event.error)
        elif isinstance(event, TranscriptUpdated):
            if state.phase is SessionPhase.CAPTURING:
                state.live_transcript = event.text
        elif isinstance(event, CaptureStopped):
            state.live_transcript = event.final_transcript
            state.phase = SessionPhase.SENDING if self._in_flight else SessionPhase.IDLE
        elif isinstance(event, RequestIssued):
            state.messages.append(Message(text=event.user_text, is_from_user=True))
            state.is_busy = True
            self._in_flight += 1
            if state.phase is not SessionPhase.CAPTURING:
                state.phase = SessionPhase.SENDING
            self._log(logging.INFO, "Request issued", provider=state.selected_provider.key)
        elif isinstance(event, (ReplyReceived, RequestFailed)):
            self._in_flight -= 1
            state.is_busy = False
            if state.phase is SessionPhase.SENDING and self._in_flight == 0:
                state.phase = SessionPhase.IDLE
            if event.generation != self._generation:
                self._log(logging.WARNING, "Stale completion after reset", generation=event.generation)
            if isinstance(event, ReplyReceived):
                state.messages.append(Message(text=event.text, is_from_user=False))
            else:
                state.last_error = event.error
        elif isinstance(event, ProviderSwitched):
            state.selected_provider = event.provider
            state.messages.append(Message(text=provider_announcement(event.provider), is_from_user=False))
            self._log(logging.INFO, "Provider switched", provider=event.provider.key)
        elif isinstance(event, AgeSubmitted):
            state.user_age_label = (event.label or "").strip()
            self._log(logging.INFO, "Age submitted", age=state.user_age_label)
        elif isinstance(event, VoiceChanged):
            state.set_voice(rate=event.rate, pitch=event.pitch)
        elif isinstance(event, ConversationReset):
            self._generation += 1
            state.clear()
            self._log(logging.INFO, "Conversation reset")
        elif isinstance(event, ErrorDismissed):
            state.last_error = None

    def _log(self, level: int, message: str, **fields: Any) -> None:
        payload: Dict[str, Any] = {"generation": self._generation}
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
