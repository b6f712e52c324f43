import asyncio
import threading

from ai_teacher.domain.conversation import SessionPhase
from ai_teacher.domain.exceptions import ProviderError, TransportError
from ai_teacher.domain.models import ProviderKind
from ai_teacher.infrastructure.storage.credential_store import InMemoryCredentialStore
from ai_teacher.prompts import load_homework_prompt, load_welcome_message
from ai_teacher.providers.adapter import ProviderAdapter
from ai_teacher.providers.gemini_client import GeminiClient
from ai_teacher.session.controller import ConversationController
from ai_teacher.speech.scripted import LoggingSpeechOutput, ScriptedSpeechCapture


class SettingsStub:
    default_provider = "gemini"
    voice_rate = 0.5
    voice_pitch = 1.0
    speech_locale = "en-US"


class FakeAdapter:
    def __init__(self, reply="Great question!", error=None, gate=None):
        self.reply = reply
        self.error = error
        self.gate = gate
        self.queries = []
        self.history_sizes = []
        self.controller = None

    def ask(self, query):
        self.queries.append(query)
        if self.controller is not None:
            self.history_sizes.append(len(self.controller.state.messages))
        if self.gate is not None:
            assert self.gate.wait(timeout=5)
        if self.error:
            raise self.error
        return self.reply


def _controller(adapter=None, capture=None, output=None):
    adapter = adapter or FakeAdapter()
    ctrl = ConversationController(
        adapter=adapter,
        capture=capture or ScriptedSpeechCapture(),
        output=output or LoggingSpeechOutput(),
        cfg=SettingsStub(),
    )
    adapter.controller = ctrl
    return ctrl, adapter


def test_submit_text_success():
    output = LoggingSpeechOutput()
    ctrl, adapter = _controller(output=output)

    async def scenario():
        ctrl.set_voice(rate=0.3, pitch=1.5)
        task = ctrl.submit_text("Why do cats purr?")
        assert task is not None
        assert ctrl.state.is_busy
        assert ctrl.state.phase is SessionPhase.SENDING
        await ctrl.wait_idle()

    asyncio.run(scenario())
    msgs = ctrl.state.messages
    assert [(m.text, m.is_from_user) for m in msgs] == [
        ("Why do cats purr?", True),
        ("Great question!", False),
    ]
    # 用户消息在请求发出前已追加
    assert adapter.history_sizes == [1]
    assert adapter.queries[0].provider is ProviderKind.GEMINI
    assert not ctrl.state.is_busy
    assert ctrl.state.phase is SessionPhase.IDLE
    assert output.utterances[-1].text == "Great question!"
    assert output.utterances[-1].rate == 0.3
    assert output.utterances[-1].pitch == 1.5


def test_blank_text_is_ignored():
    ctrl, adapter = _controller()

    async def scenario():
        assert ctrl.submit_text("   \n") is None
        assert ctrl.submit_text("") is None
        await ctrl.wait_idle()

    asyncio.run(scenario())
    assert ctrl.state.messages == []
    assert adapter.queries == []
    assert not ctrl.state.is_busy


def test_failure_sets_error_without_message():
    output = LoggingSpeechOutput()
    ctrl, _ = _controller(
        adapter=FakeAdapter(error=ProviderError(code="PROVIDER_ERROR", message="bad key")),
        output=output,
    )

    async def scenario():
        ctrl.submit_text("hello")
        await ctrl.wait_idle()

    asyncio.run(scenario())
    assert len(ctrl.state.messages) == 1
    assert ctrl.state.messages[0].is_from_user
    assert ctrl.state.last_error == "AI Error: bad key"
    assert not ctrl.state.is_busy
    assert output.utterances == []

    ctrl.dismiss_error()
    assert ctrl.state.last_error is None


def test_transport_error_is_not_fatal():
    ctrl, adapter = _controller(adapter=FakeAdapter(error=TransportError(code="NETWORK_ERROR", message="timeout")))

    async def scenario():
        ctrl.submit_text("one")
        await ctrl.wait_idle()
        adapter.error = None
        ctrl.submit_text("two")
        await ctrl.wait_idle()

    asyncio.run(scenario())
    assert [m.text for m in ctrl.state.messages] == ["one", "two", "Great question!"]


def test_capture_then_stop_submits_transcript():
    capture = ScriptedSpeechCapture("what makes rain")
    ctrl, adapter = _controller(capture=capture)

    async def scenario():
        assert ctrl.start_capture()
        assert ctrl.state.phase is SessionPhase.CAPTURING
        await asyncio.sleep(0)
        assert ctrl.state.live_transcript == "what makes rain"
        assert ctrl.state.messages == []
        task = ctrl.stop_capture()
        assert task is not None
        await ctrl.wait_idle()

    asyncio.run(scenario())
    assert capture.started_locales == ["en-US"]
    assert adapter.queries[0].user_text == "what makes rain"
    assert ctrl.state.messages[0].text == "what makes rain"
    assert ctrl.state.phase is SessionPhase.IDLE


def test_toggle_recording_round_trip():
    ctrl, adapter = _controller(capture=ScriptedSpeechCapture("how big is the sun"))

    async def scenario():
        assert ctrl.toggle_recording() is None
        assert ctrl.state.phase is SessionPhase.CAPTURING
        assert ctrl.toggle_recording() is not None
        await ctrl.wait_idle()

    asyncio.run(scenario())
    assert len(adapter.queries) == 1


def test_empty_capture_sends_nothing():
    ctrl, adapter = _controller(capture=ScriptedSpeechCapture("   "))

    async def scenario():
        ctrl.start_capture()
        assert ctrl.stop_capture() is None
        await ctrl.wait_idle()

    asyncio.run(scenario())
    assert ctrl.state.messages == []
    assert adapter.queries == []
    assert ctrl.state.phase is SessionPhase.IDLE


def test_capture_start_failure():
    ctrl, _ = _controller(capture=ScriptedSpeechCapture(fail_reason="microphone permission denied"))

    async def scenario():
        assert not ctrl.start_capture()

    asyncio.run(scenario())
    assert ctrl.state.phase is SessionPhase.IDLE
    assert ctrl.state.last_error == "Failed to start recording: microphone permission denied"


def test_reset_clears_history_and_speaks_welcome():
    output = LoggingSpeechOutput()
    ctrl, _ = _controller(adapter=FakeAdapter(error=ProviderError(code="PROVIDER_ERROR", message="x")), output=output)

    async def scenario():
        ctrl.switch_provider("openai")
        ctrl.set_voice(rate=0.8)
        ctrl.submit_text("hello")
        await ctrl.wait_idle()
        ctrl.reset()

    asyncio.run(scenario())
    assert ctrl.state.messages == []
    assert ctrl.state.last_error is None
    assert ctrl.state.selected_provider is ProviderKind.OPENAI
    assert ctrl.state.voice_rate == 0.8
    assert output.stop_count >= 1
    assert output.last_text == load_welcome_message()


def test_reset_from_empty_state_still_speaks():
    output = LoggingSpeechOutput()
    ctrl, _ = _controller(output=output)
    ctrl.reset()
    assert output.utterances[-1].text == load_welcome_message()


def test_switch_provider_announces_once():
    ctrl, adapter = _controller()
    assert ctrl.switch_provider(ProviderKind.OPENAI)
    assert not ctrl.switch_provider("ChatGPT")
    assert [(m.text, m.is_from_user) for m in ctrl.state.messages] == [("I am the ChatGPT AI", False)]

    async def scenario():
        ctrl.submit_text("hi")
        await ctrl.wait_idle()

    asyncio.run(scenario())
    assert adapter.queries[0].provider is ProviderKind.OPENAI


def test_age_flows_into_system_prompt():
    ctrl, adapter = _controller()

    async def scenario():
        ctrl.submit_age(" 9 ")
        ctrl.submit_text("What is a volcano?")
        await ctrl.wait_idle()

    asyncio.run(scenario())
    assert ctrl.state.user_age_label == "9"
    assert adapter.queries[0].system_prompt.endswith("at the age of 9")


def test_attach_image_uses_homework_prompt():
    ctrl, adapter = _controller()

    async def scenario():
        ctrl.attach_image(b"fake-jpeg-bytes")
        await ctrl.wait_idle()

    asyncio.run(scenario())
    query = adapter.queries[0]
    assert query.attached_image == b"fake-jpeg-bytes"
    assert query.user_text == load_homework_prompt()
    assert ctrl.state.messages[0].text == load_homework_prompt()
    assert not ctrl.state.messages[1].is_from_user


def test_late_reply_after_reset_is_still_appended():
    gate = threading.Event()
    ctrl, _ = _controller(adapter=FakeAdapter(reply="late answer", gate=gate))

    async def scenario():
        ctrl.submit_text("slow question")
        ctrl.reset()
        assert ctrl.state.messages == []
        gate.set()
        await ctrl.wait_idle()

    asyncio.run(scenario())
    assert [(m.text, m.is_from_user) for m in ctrl.state.messages] == [("late answer", False)]
    assert not ctrl.state.is_busy


def test_new_reply_halts_active_speech():
    output = LoggingSpeechOutput()
    ctrl, _ = _controller(output=output)

    async def scenario():
        ctrl.submit_text("first")
        await ctrl.wait_idle()
        stops_before = output.stop_count
        ctrl.submit_text("second")
        await ctrl.wait_idle()
        assert output.stop_count == stops_before + 1

    asyncio.run(scenario())
    assert len(output.utterances) == 2


class PerTextGateAdapter:
    """每个问题各自一把闸门，用于控制回复到达顺序。"""

    def __init__(self, gates):
        self.gates = gates

    def ask(self, query):
        assert self.gates[query.user_text].wait(timeout=5)
        return f"re: {query.user_text}"


def test_overlapping_requests_complete_in_arrival_order():
    gates = {"first": threading.Event(), "second": threading.Event()}
    ctrl = ConversationController(
        adapter=PerTextGateAdapter(gates),
        capture=ScriptedSpeechCapture(),
        output=LoggingSpeechOutput(),
        cfg=SettingsStub(),
    )

    async def scenario():
        ctrl.submit_text("first")
        ctrl.submit_text("second")
        gates["second"].set()
        for _ in range(500):
            if len(ctrl.state.messages) == 3:
                break
            await asyncio.sleep(0.01)
        assert [m.text for m in ctrl.state.messages] == ["first", "second", "re: second"]
        # is_busy 以最后一次完成为准，phase 要等所有请求结束
        assert not ctrl.state.is_busy
        assert ctrl.state.phase is SessionPhase.SENDING
        gates["first"].set()
        await ctrl.wait_idle()

    asyncio.run(scenario())
    assert [(m.text, m.is_from_user) for m in ctrl.state.messages] == [
        ("first", True),
        ("second", True),
        ("re: second", False),
        ("re: first", False),
    ]
    assert not ctrl.state.is_busy
    assert ctrl.state.phase is SessionPhase.IDLE


def test_attach_empty_image_surfaces_error(monkeypatch):
    class GeminiSettings:
        http_timeout = 1.0
        gemini_base_url = "https://generativelanguage.googleapis.com/v1beta"
        gemini_model = "gemini-2.5-flash"

    class Client:
        def __init__(self, *a, **kw):
            raise AssertionError("no request expected")

    monkeypatch.setattr("httpx.Client", Client)
    adapter = ProviderAdapter(
        InMemoryCredentialStore({ProviderKind.GEMINI: "AIza-test-key"}),
        clients={ProviderKind.GEMINI: GeminiClient(GeminiSettings())},
    )
    output = LoggingSpeechOutput()
    ctrl = ConversationController(adapter=adapter, capture=ScriptedSpeechCapture(), output=output, cfg=SettingsStub())

    async def scenario():
        ctrl.attach_image(b"")
        await ctrl.wait_idle()

    asyncio.run(scenario())
    assert [(m.text, m.is_from_user) for m in ctrl.state.messages] == [(load_homework_prompt(), True)]
    assert ctrl.state.last_error.startswith("AI Error:")
    assert "empty image" in ctrl.state.last_error
    assert not ctrl.state.is_busy
    assert output.utterances == []
