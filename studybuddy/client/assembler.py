"""
Incremental assembly of a streamed assistant reply.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from .sse_parser import Frame

logger = logging.getLogger(__name__)

CODE_BLOCK_RE = re.compile(r"```.*?```", re.DOTALL)


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class ConversationMessage:
    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}

    @property
    def is_assistant(self) -> bool:
        return self.role is Role.ASSISTANT


def upsert_assistant_message(messages: List[ConversationMessage], text: str) -> ConversationMessage:
    """Replace the last message if it is the assistant's, else append one."""
    if messages and messages[-1].is_assistant:
        messages[-1].content = text
        return messages[-1]
    message = ConversationMessage(Role.ASSISTANT, text)
    messages.append(message)
    return message


def strip_code_blocks(text: str) -> str:
    """Remove fenced code blocks, leaving only the prose."""
    return CODE_BLOCK_RE.sub("", text)


class MessageAssembler:
    """Turns content deltas into a live-updating assistant message.

    Each delta is appended to ``assembled_text`` and the conversation tail
    is updated in place, so observers always see a prefix of the final
    reply. ``finish`` freezes the text and hands the prose (fenced blocks
    removed) to any registered completion consumers.
    """

    def __init__(self, messages: List[ConversationMessage],
                 on_update: Optional[Callable[[str], None]] = None):
        self.messages = messages
        self.assembled_text = ""
        self.updates = 0
        self.frozen = False
        self._on_update = on_update
        self._consumers: List[Callable[[str], None]] = []

    def add_consumer(self, consumer: Callable[[str], None]) -> None:
        self._consumers.append(consumer)

    def apply_delta(self, delta: str) -> bool:
        """Append one delta. Returns False if nothing changed."""
        if self.frozen or not delta:
            return False
        self.assembled_text += delta
        upsert_assistant_message(self.messages, self.assembled_text)
        self.updates += 1
        if self._on_update:
            self._on_update(self.assembled_text)
        return True

    def apply_frame(self, frame: Frame) -> bool:
        if frame.is_done:
            self.finish()
            return False
        return self.apply_delta(frame.content)

    def finish(self) -> str:
        """Freeze the reply and notify completion consumers once."""
        if self.frozen:
            return self.assembled_text
        self.frozen = True

        if self.assembled_text:
            prose = strip_code_blocks(self.assembled_text)
            for consumer in self._consumers:
                try:
                    consumer(prose)
                except Exception as e:
                    logger.warning("Completion consumer %r failed: %s", consumer, e)
        return self.assembled_text
