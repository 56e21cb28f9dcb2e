"""
One request/response cycle of the tutor chat.
"""

import itertools
import logging
from typing import Any, Callable, List, Optional

from .assembler import ConversationMessage, MessageAssembler
from .sse_parser import Frame, SSEFrameParser

logger = logging.getLogger(__name__)

_session_ids = itertools.count(1)


class StreamSession:
    """Owns the parser and assembler for a single assistant turn.

    A session is active from creation until it completes, fails or is
    cancelled. Text fed to an inactive session is discarded, which is how
    late chunks from a superseded stream are ignored.
    """

    def __init__(self, messages: List[ConversationMessage],
                 on_update: Optional[Callable[[str], None]] = None):
        self.session_id = next(_session_ids)
        self.parser = SSEFrameParser()
        self.assembler = MessageAssembler(messages, on_update=on_update)
        self.is_active = True
        self.last_error: Optional[BaseException] = None
        self.response: Any = None

    @property
    def pending_buffer(self) -> str:
        return self.parser.unconsumed

    @property
    def assembled_text(self) -> str:
        return self.assembler.assembled_text

    @property
    def finished(self) -> bool:
        """True once ``[DONE]`` was seen."""
        return self.parser.done

    def attach(self, response: Any) -> None:
        """Remember the HTTP response so cancel() can abort the read."""
        self.response = response

    def feed(self, text: str) -> List[Frame]:
        if not self.is_active:
            logger.debug("Session %d inactive, discarding %d chars", self.session_id, len(text))
            return []
        frames = self.parser.feed(text)
        for frame in frames:
            self.assembler.apply_frame(frame)
        return frames

    def complete(self) -> str:
        """Flush the trailing partial line and freeze the reply."""
        if self.is_active:
            for frame in self.parser.finish():
                self.assembler.apply_frame(frame)
        text = self.assembler.finish()
        self._deactivate()
        return text

    def fail(self, error: BaseException) -> None:
        self.last_error = error
        self._deactivate()

    def cancel(self) -> None:
        if self.is_active:
            logger.debug("Cancelling session %d", self.session_id)
        self._deactivate()

    def _deactivate(self) -> None:
        self.is_active = False
        if self.response is not None:
            try:
                self.response.close()
            finally:
                self.response = None
