"""
Core chat functionality: one user turn in, one streamed assistant turn out.

Flow of a turn:

    user text
        ↓
    HistoryManager.add_message("user")      initial append
        ↓
    ConnectionManager.open_stream()         POST, status checks
        ↓
    StreamReader → SSEFrameParser           bytes → text → frames
        ↓
    MessageAssembler                        replace-last-if-assistant
        ↓
    StreamView.update()                     repaint on every delta
        ↓
    completion consumers (speech, ...)      prose only, code stripped

Learning Points:
- Only one StreamSession is live per conversation; starting a turn
  cancels the previous one and its late chunks are discarded by identity
- Failures never crash the REPL: every StudyBuddyError becomes a single
  assistant-role message in the conversation
"""

import logging
from typing import Callable, List, Optional

from .config import ChatConfig
from .connection_manager import ConnectionManager
from .errors import StudyBuddyError
from .history_manager import HistoryManager
from .response_handler import ResponseHandler
from .session import StreamSession
from .speech import SpeechCapability, UnsupportedSpeech
from .stream_reader import StreamReader

logger = logging.getLogger(__name__)


class ChatEngine:
    """Runs chat turns against the proxy and keeps the conversation consistent."""

    def __init__(self, config: ChatConfig, connection_manager: ConnectionManager,
                 response_handler: ResponseHandler, history_manager: HistoryManager,
                 speech: Optional[SpeechCapability] = None):
        """Initialize the chat engine.

        Args:
            config: ChatConfig for topic, language and speech settings
            connection_manager: opens the streamed request to the proxy
            response_handler: paints the live assistant panel
            history_manager: owns the conversation the sessions write into
            speech: optional text-to-speech; silent if None
        """
        self.config = config
        self.connection_manager = connection_manager
        self.response_handler = response_handler
        self.history_manager = history_manager
        self.speech = speech or UnsupportedSpeech()
        self.active_session: Optional[StreamSession] = None
        self.completion_consumers: List[Callable[[str], None]] = []

    def add_completion_consumer(self, consumer: Callable[[str], None]) -> None:
        """Register a callback that receives each finished reply's prose."""
        self.completion_consumers.append(consumer)

    # ========================================================================
    # Session lifecycle
    # ========================================================================

    def start_session(self, on_update: Optional[Callable[[str], None]] = None) -> StreamSession:
        """Cancel any in-flight stream and open a new session.

        Args:
            on_update: called with the full assistant text after each delta

        Returns:
            StreamSession: the session now accepting chunks
        """
        self.cancel_active()
        session = StreamSession(self.history_manager.messages, on_update=on_update)
        if self.config.speak and self.speech.supported:
            session.assembler.add_consumer(self.speech.speak)
        for consumer in self.completion_consumers:
            session.assembler.add_consumer(consumer)
        self.active_session = session
        logger.debug("Started session %d", session.session_id)
        return session

    def cancel_active(self) -> None:
        """Cancel and forget the live session, if any."""
        if self.active_session is not None:
            self.active_session.cancel()
            self.active_session = None

    def deliver(self, session_id: int, text: str) -> bool:
        """Feed decoded text to the session with this id, if it is current.

        Args:
            session_id: id of the session the text was read for
            text: decoded body text

        Returns:
            bool: False when the session was superseded and the text dropped
        """
        session = self.active_session
        if session is None or session.session_id != session_id:
            logger.debug("Discarding late chunk for superseded session %d", session_id)
            return False
        session.feed(text)
        return True

    # ========================================================================
    # Public API
    # ========================================================================

    def chat(self, message: str) -> str:
        """Send a user message and stream the assistant reply.

        Blank messages are ignored. An empty reply paints "(no response)"
        and adds no assistant turn.

        Args:
            message: the learner's text

        Returns:
            str: the final reply, or the error message shown in its place
        """
        message = message.strip()
        if not message:
            return ""

        # Speech output is exclusive; a new turn silences the last reply.
        self.speech.stop()
        self.cancel_active()
        self.history_manager.add_message("user", message)
        self._log_prompt()

        with self.response_handler.live_display() as view:
            session = self.start_session(on_update=view.update)
            try:
                reply = self._stream_reply(session)
            except StudyBuddyError as e:
                return self._fail_turn(session, e, view)
            except BaseException:
                session.cancel()
                raise
            finally:
                if self.active_session is session:
                    self.active_session = None
            view.finalize(reply)

        logger.debug("Reply (%d chars, %d updates): %.500s",
                     len(reply), session.assembler.updates, reply)
        return reply

    def _stream_reply(self, session: StreamSession) -> str:
        response = self.connection_manager.open_stream(self.history_manager.get_history())
        session.attach(response)

        for text in StreamReader(self.connection_manager.iter_chunks(response)):
            if not self.deliver(session.session_id, text):
                break
            if session.finished:
                break
        return session.complete()

    def _fail_turn(self, session: StreamSession, error: StudyBuddyError, view) -> str:
        if not session.is_active and session.last_error is None and self.active_session is not session:
            # Abandoned by a newer turn; its failure is not this turn's news.
            logger.debug("Ignoring error from abandoned session %d: %s", session.session_id, error)
            return session.assembled_text

        session.fail(error)
        logger.error("Chat turn failed: %s", error)
        content = error.to_chat_message()
        self.history_manager.add_message("assistant", content)
        view.fail(content)
        return content

    def _log_prompt(self) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        logger.debug("=== CHAT PROMPT ===")
        logger.debug("Topic: %s, Language: %s, Style: %s",
                     self.config.topic, self.config.language, self.config.communication_style)
        for msg in self.history_manager.messages:
            logger.debug("%s: %.500s", msg.role.value.upper(), msg.content)
