"""
Main chat client that orchestrates all components.
"""

from typing import Optional

import requests
from rich.console import Console

from studybuddy.materials import StudyMaterials, StudySchedule

from .chat_engine import ChatEngine
from .config import ChatConfig
from .connection_manager import ConnectionManager, SetupReport
from .errors import StudyBuddyError
from .history_manager import HistoryManager
from .response_handler import ResponseHandler
from .speech import SpeechCapability, detect_speech
from .study_manager import StudyManager
from .study_view import StudyView
from .ui_manager import UIManager

SUGGESTED_QUESTIONS = [
    "Can you give me a simpler analogy?",
    "What are common mistakes about this?",
    "How is this used in real life?",
    "Can you quiz me on this?",
]

EXPLANATION_LEVELS = ("basic", "intermediate", "advanced")


def explanation_prompt(topic: str, level: str = "basic", examples: bool = True) -> str:
    """User message asking for an explanation of ``topic`` at ``level``."""
    if level not in EXPLANATION_LEVELS:
        raise ValueError(f"Unknown level {level!r}; expected one of {', '.join(EXPLANATION_LEVELS)}")
    prompt = f"Explain the following topic: {topic}. Pitch it at a {level} level."
    if examples:
        prompt += " Include concrete examples."
    return prompt


class ChatClient:
    """Terminal study companion talking to the Study Buddy proxy.

    Wires the components together and exposes one method per REPL
    command. Chat failures are shown as assistant turns by the chat
    engine; study and plan failures are printed as error lines and the
    method returns None.
    """

    def __init__(self, config: ChatConfig, session: Optional[requests.Session] = None,
                 speech: Optional[SpeechCapability] = None, console: Optional[Console] = None):
        """Initialize the client and its components.

        Args:
            config: ChatConfig with proxy URL, credentials and study settings
            session: optional requests session (tests pass a fake)
            speech: optional speech capability; detected from config.speak if None
            console: optional rich console; a default Console if None
        """
        self.config = config
        self.console = console or Console()

        # Initialize components
        self.connection_manager = ConnectionManager(config, session=session)
        self.response_handler = ResponseHandler(self.console)
        self.history_manager = HistoryManager(self.console)
        self.ui_manager = UIManager(config, self.console)
        self.speech = speech if speech is not None else detect_speech(config.speak)
        self.chat_engine = ChatEngine(config, self.connection_manager, self.response_handler,
                                      self.history_manager, speech=self.speech)
        self.study_manager = StudyManager(config, self.connection_manager)
        self.study_view = StudyView(self.console, self.response_handler)
        # Context installed by study(); user-supplied context is never replaced
        self._study_context: Optional[str] = None

    # ========================================================================
    # Chat
    # ========================================================================

    def chat(self, message: str) -> str:
        """Send a chat message and get response.

        Args:
            message: the learner's text

        Returns:
            str: the assistant's reply, or the error text shown in its place
        """
        return self.chat_engine.chat(message)

    def ask_suggested(self, number: int) -> str:
        """Ask one of SUGGESTED_QUESTIONS.

        Args:
            number: position in SUGGESTED_QUESTIONS, counted from 1

        Raises:
            ValueError: number is out of range
        """
        if not 1 <= number <= len(SUGGESTED_QUESTIONS):
            raise ValueError(f"Pick a question between 1 and {len(SUGGESTED_QUESTIONS)}")
        return self.chat(SUGGESTED_QUESTIONS[number - 1])

    def explain(self, level: str = "basic", examples: bool = True) -> str:
        """Ask for an explanation of the current topic at ``level``."""
        topic = self.config.topic or "General Studies"
        return self.chat(explanation_prompt(topic, level, examples))

    def set_topic(self, topic: str) -> None:
        """Change the study topic; a blank name clears it."""
        self.config.topic = topic.strip() or None

    # ========================================================================
    # Study materials and schedule
    # ========================================================================

    def study(self, topic: Optional[str] = None) -> Optional[StudyMaterials]:
        """Generate and show study materials.

        The explanation becomes the chat context for follow-up questions,
        unless the learner supplied their own context.

        Args:
            topic: subject to study; defaults to the current topic

        Returns:
            StudyMaterials, or None when there is no topic or the request failed
        """
        topic = (topic or self.config.topic or "").strip()
        if not topic:
            self.ui_manager.show_error("Usage: /study <topic>")
            return None

        try:
            with self.console.status("[bold green]Creating study materials...", spinner="dots"):
                materials = self.study_manager.generate(topic)
        except StudyBuddyError as e:
            self.ui_manager.show_error(str(e))
            return None

        self.config.topic = topic
        if self.config.context is None or self.config.context == self._study_context:
            self.config.context = materials.explanation
            self._study_context = materials.explanation
        self.study_view.show_materials(materials, topic)
        return materials

    def show_answers(self) -> None:
        """Show the current quiz with correct options and explanations."""
        if self.study_manager.materials is None:
            self.ui_manager.show_error("No quiz yet. Use /study <topic> first")
            return
        self.study_view.show_quiz(self.study_manager.materials, reveal=True)

    def new_quiz(self) -> Optional[StudyMaterials]:
        """Replace the quiz with freshly generated questions.

        Returns:
            StudyMaterials with the new quiz, or None on failure
        """
        if self.study_manager.materials is None:
            self.ui_manager.show_error("No quiz yet. Use /study <topic> first")
            return None
        try:
            with self.console.status("[bold green]Writing new questions...", spinner="dots"):
                materials = self.study_manager.regenerate_quiz()
        except StudyBuddyError as e:
            self.ui_manager.show_error(str(e))
            return None
        self.study_view.show_quiz(materials)
        return materials

    def plan(self, goals: str) -> Optional[StudySchedule]:
        """Generate and show a weekly study timetable.

        Args:
            goals: free-text description, e.g. "physics on weekday evenings"

        Returns:
            StudySchedule, or None on failure
        """
        try:
            with self.console.status("[bold green]Planning your week...", spinner="dots"):
                schedule = self.study_manager.plan(goals)
        except StudyBuddyError as e:
            self.ui_manager.show_error(str(e))
            return None
        self.study_view.show_schedule(schedule)
        return schedule

    # ========================================================================
    # Session management
    # ========================================================================

    def clear_history(self) -> None:
        """Cancel any running stream and clear conversation history."""
        self.chat_engine.cancel_active()
        self.history_manager.clear_history()

    def show_history(self) -> None:
        """Show conversation history."""
        self.history_manager.show_history()

    def check_setup(self) -> SetupReport:
        """Run the setup check and print its report.

        Returns:
            SetupReport: the result, also shown on the console
        """
        report = self.connection_manager.check_setup()
        self.ui_manager.show_setup_report(report)
        return report

    def close(self) -> None:
        """Stop streaming and speech and release the HTTP session."""
        self.chat_engine.cancel_active()
        self.speech.stop()
        self.connection_manager.session.close()
