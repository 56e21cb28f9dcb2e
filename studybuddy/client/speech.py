"""
Text-to-speech as an injected capability.

The chat engine never talks to a speech backend directly. It is handed a
SpeechCapability, which is either supported (speaks through a system TTS
command) or unsupported (does nothing). Headless runs and tests use the
unsupported variant.
"""

import logging
import re
import shutil
import subprocess
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)

KNOWN_COMMANDS = (["espeak"], ["say"], ["spd-say", "--wait"])


def speakable(text: str) -> str:
    """Collapse newlines so the utterance reads as one paragraph."""
    return re.sub(r"\n+", " ", text).strip()


class SpeechCapability:
    """Exclusive-use speech output."""

    supported = False

    def speak(self, text: str) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError

    @property
    def speaking(self) -> bool:
        return False


class UnsupportedSpeech(SpeechCapability):
    """Speech is unavailable in this environment."""

    def __init__(self, reason: str = "Speech synthesis not supported"):
        self.reason = reason

    def speak(self, text: str) -> None:
        logger.debug("Not speaking %d chars: %s", len(text), self.reason)

    def stop(self) -> None:
        pass


class CommandSpeech(SpeechCapability):
    """Speaks by running a TTS command such as ``espeak`` in a subprocess.

    Only one utterance plays at a time: speaking again stops the previous
    one first.
    """

    supported = True

    def __init__(self, command: Sequence[str]):
        self.command: List[str] = list(command)
        self._process: Optional[subprocess.Popen] = None

    @property
    def speaking(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def speak(self, text: str) -> None:
        self.stop()
        utterance = speakable(text)
        if not utterance:
            return
        self._process = subprocess.Popen(
            self.command + [utterance],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

    def stop(self) -> None:
        if self.speaking:
            self._process.terminate()
            self._process.wait()
        self._process = None


def detect_speech(enabled: bool = True) -> SpeechCapability:
    """Return the first available TTS command, or UnsupportedSpeech."""
    if not enabled:
        return UnsupportedSpeech("Speech disabled")
    for command in KNOWN_COMMANDS:
        if shutil.which(command[0]):
            return CommandSpeech(command)
    return UnsupportedSpeech("No text-to-speech command found on PATH")
