"""Minimal demonstration of a voice-style session with scripted speech."""

import asyncio

from ai_teacher import create_controller
from ai_teacher.speech.scripted import LoggingSpeechOutput, ScriptedSpeechCapture


async def main() -> None:
    capture = ScriptedSpeechCapture("Why is the sky blue?")
    output = LoggingSpeechOutput()
    controller = create_controller(capture=capture, output=output)
    controller.submit_age("8")
    controller.start_capture()
    controller.stop_capture()
    await controller.wait_idle()
    for msg in controller.state.messages:
        print("Kid:" if msg.is_from_user else "Teacher:", msg.text)
    if controller.state.last_error:
        print("Error:", controller.state.last_error)


if __name__ == "__main__":
    asyncio.run(main())
