"""
SSE frame parsing for OpenAI-style chat completion streams.

The gateway emits lines of the form::

    data: {"choices": [{"delta": {"content": "Hel"}}]}
    : keep-alive

    data: [DONE]

Learning Points:
- Line splitting is done on the decoded text, never on raw bytes
- A line that fails to parse as JSON is not thrown away. It is kept as a
  pending payload and retried once the next line arrives, which recovers
  JSON objects fractured by an embedded newline
- Only the failed line waits. Lines that start a new ``data:`` frame are
  still processed in order
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class FrameKind(Enum):
    DELTA = "delta"
    DONE = "done"


@dataclass
class Frame:
    """A parsed protocol unit handed to the assembler."""
    kind: FrameKind
    content: str = ""
    payload: Optional[Any] = field(default=None, repr=False)

    @property
    def is_done(self) -> bool:
        return self.kind is FrameKind.DONE


def extract_delta(data: Any) -> str:
    """Return ``choices[0].delta.content`` or an empty string."""
    try:
        content = data["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return ""
    return content if isinstance(content, str) else ""


class SSEFrameParser:
    """Incremental parser turning decoded text into content frames.

    State:
        pending_buffer: text received but not yet terminated by a newline
        pending_payload: a ``data:`` payload that failed to parse and is
            waiting to be joined with its continuation
        done: set once ``[DONE]`` has been seen; further input is ignored
    """

    def __init__(self):
        self.pending_buffer = ""
        self.pending_payload: Optional[str] = None
        self.done = False
        self.dropped_frames = 0

    @property
    def unconsumed(self) -> str:
        """Everything not yet resolved into a frame, newline restored."""
        if self.pending_payload is None:
            return self.pending_buffer
        return f"{DATA_PREFIX}{self.pending_payload}\n{self.pending_buffer}"

    def feed(self, text: str) -> List[Frame]:
        """Append decoded text and return every frame it completes."""
        if self.done:
            return []

        self.pending_buffer += text
        frames = []
        while not self.done:
            newline_index = self.pending_buffer.find("\n")
            if newline_index == -1:
                break
            line = self.pending_buffer[:newline_index]
            self.pending_buffer = self.pending_buffer[newline_index + 1:]
            frame = self._process_line(_strip_cr(line))
            if frame is not None:
                frames.append(frame)
        return frames

    def finish(self) -> List[Frame]:
        """Flush the final unterminated line at end of stream.

        Parse failures here are tolerated: no more bytes will arrive to
        complete them.
        """
        tail, self.pending_buffer = self.pending_buffer, ""
        frames = []
        if not self.done:
            for raw in tail.split("\n"):
                frame = self._process_line(_strip_cr(raw))
                if frame is not None:
                    frames.append(frame)
                if self.done:
                    break

        if self.pending_payload is not None:
            logger.debug("Dropping unparsable payload at end of stream: %.200s", self.pending_payload)
            self.dropped_frames += 1
            self.pending_payload = None
        return frames

    def _process_line(self, line: str) -> Optional[Frame]:
        if self.pending_payload is not None:
            if not line.startswith(DATA_PREFIX) and not line.startswith(":"):
                return self._parse_payload(f"{self.pending_payload}\n{line}")
            logger.debug("Dropping unparsable payload: %.200s", self.pending_payload)
            self.dropped_frames += 1
            self.pending_payload = None

        if line.startswith(":") or not line.strip():
            return None
        if not line.startswith(DATA_PREFIX):
            logger.debug("Ignoring non-data line: %.200s", line)
            return None

        payload = line[len(DATA_PREFIX):].strip()
        if payload == DONE_SENTINEL:
            self.done = True
            return Frame(FrameKind.DONE)
        return self._parse_payload(payload)

    def _parse_payload(self, payload: str) -> Optional[Frame]:
        try:
            # strict=False lets a restored newline sit inside a JSON string
            data = json.loads(payload, strict=False)
        except ValueError:
            self.pending_payload = payload
            return None

        self.pending_payload = None
        return Frame(FrameKind.DELTA, content=extract_delta(data), payload=data)


def _strip_cr(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line


def iter_frames(texts: Iterable[str], parser: Optional[SSEFrameParser] = None) -> Iterator[Frame]:
    """Parse a sequence of text fragments, stopping after ``[DONE]``."""
    parser = parser or SSEFrameParser()
    for text in texts:
        for frame in parser.feed(text):
            yield frame
        if parser.done:
            return
    for frame in parser.finish():
        yield frame
