"""
UI management for displaying messages and status.
"""

from typing import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import ChatConfig
from .connection_manager import SetupReport

WELCOME_MESSAGES = {
    "en": "Hi there! 👋 I'm your Study Buddy, and I'm here to help you learn! Feel free to ask me anything - I'll adapt my communication style to match yours.",
    "hi": "नमस्ते! 👋 मैं आपका Study Buddy हूं, और मैं आपको सीखने में मदद करने के लिए यहां हूं! मुझसे कुछ भी पूछें - मैं अपनी संचार शैली को आपके अनुसार ढाल लूंगा।",
    "es": "¡Hola! 👋 Soy tu Study Buddy, ¡estoy aquí para ayudarte a aprender! Siéntete libre de preguntarme cualquier cosa.",
    "fr": "Bonjour! 👋 Je suis ton Study Buddy, et je suis ici pour t'aider à apprendre! N'hésite pas à me poser des questions.",
    "de": "Hallo! 👋 Ich bin dein Study Buddy und bin hier, um dir beim Lernen zu helfen! Frag mich einfach alles.",
    "pt": "Olá! 👋 Sou seu Study Buddy e estou aqui para ajudá-lo a aprender! Sinta-se livre para me fazer qualquer pergunta.",
    "ja": "こんにちは! 👋 私はあなたのStudy Buddyです。学習をお手伝いします！何でもお聞きください。",
    "zh": "你好! 👋 我是你的Study Buddy。我在这里帮助你学习！随时可以问我任何问题。",
}


class UIManager:
    """Manages user interface elements: welcome, help, tables and status lines."""

    def __init__(self, config: ChatConfig, console: Console = None):
        """Initialize the UI manager.

        Args:
            config: ChatConfig shown in the welcome panel
            console: rich console to print to (a new Console if None)
        """
        self.config = config
        self.console = console or Console()

    # ========================================================================
    # Welcome and help
    # ========================================================================

    def welcome_message(self) -> str:
        """Greeting in the configured language, English when unknown."""
        return WELCOME_MESSAGES.get(self.config.language, WELCOME_MESSAGES["en"])

    def show_welcome(self, speech_supported: bool = False):
        """Show welcome message with rich formatting.

        Args:
            speech_supported: whether a TTS command was found; only shown
                when speech was requested
        """
        welcome_text = Text()
        welcome_text.append("📚 Study Buddy", style="bold blue")
        if self.config.topic:
            welcome_text.append(f" · {self.config.topic}", style="bold green")
        welcome_text.append("\n\n")
        welcome_text.append(self.welcome_message() + "\n\n")
        welcome_text.append("Configuration:\n", style="bold")
        welcome_text.append(f"• Server: {self.config.chat_url}\n")
        welcome_text.append(f"• Language: {self.config.language}\n")
        welcome_text.append(f"• Style: {self.config.communication_style}\n")
        welcome_text.append(f"• Idle timeout: {self.config.idle_timeout:g}s\n")
        if self.config.speak:
            welcome_text.append(f"• Speech: {'Enabled' if speech_supported else 'Unavailable'}\n",
                                style="green" if speech_supported else "yellow")

        welcome_text.append("\nCommands: /help, /study, /plan, /suggest, /explain, /topic, /clear, /history, /doctor, /quit\n",
                            style="dim")
        welcome_text.append("Type your question and press Enter to chat!", style="italic")

        self.console.print(Panel(welcome_text, title=":rocket: Welcome", border_style="blue"))

    def show_help(self):
        """Show help message."""
        help_table = Table(title="Available Commands")
        help_table.add_column("Command", style="cyan", no_wrap=True)
        help_table.add_column("Description", style="white")
        help_table.add_row("/help", "Show this help message")
        help_table.add_row("/suggest", "List suggested follow-up questions")
        help_table.add_row("/ask <n>", "Ask suggested question number n")
        help_table.add_row("/explain \\[level]", "Explain the topic (basic, intermediate, advanced)")
        help_table.add_row("/topic <name>", "Change the study topic")
        help_table.add_row("/study \\[topic]", "Flashcards, quiz and tips for a topic (default: current topic)")
        help_table.add_row("/answers", "Reveal the quiz answers")
        help_table.add_row("/newquiz", "Replace the quiz with new questions")
        help_table.add_row("/plan <goals>", "Build a weekly study timetable from your goals")
        help_table.add_row("/clear", "Clear conversation history")
        help_table.add_row("/history", "Show conversation history")
        help_table.add_row("/doctor", "Check client and proxy setup")
        help_table.add_row("/quit", "Exit the chat")
        self.console.print(help_table)

    # ========================================================================
    # Tables and reports
    # ========================================================================

    def show_suggestions(self, questions: Sequence[str]):
        """Numbered table of follow-up questions.

        Args:
            questions: questions to list, numbered from 1 for /ask
        """
        table = Table(title="💡 Suggested Questions", show_header=False)
        table.add_column("#", style="cyan", no_wrap=True)
        table.add_column("Question", style="white")
        for i, question in enumerate(questions, 1):
            table.add_row(str(i), question)
        self.console.print(table)

    def show_setup_report(self, report: SetupReport):
        """Print the /doctor checks followed by one error line per problem.

        Args:
            report: result of ConnectionManager.check_setup()
        """
        table = Table(title="🔍 Study Buddy Setup", show_header=False)
        table.add_column("Check", style="cyan", no_wrap=True)
        table.add_column("Result")
        table.add_row("Base URL", f"✓ {self.config.base_url}" if report.base_url_set else "❌ not set")
        table.add_row("API key", "✓ set" if report.api_key_set else "❌ not set")
        if report.status_code is not None:
            table.add_row("Endpoint", f"status {report.status_code}")
        self.console.print(table)

        if report.ok:
            self.show_success("Setup looks good")
        for problem in report.problems:
            self.show_error(problem)

    # ========================================================================
    # Status lines
    # ========================================================================

    def show_error(self, message: str):
        """Show error message."""
        self.console.print(Text(f"❌ {message}", style="red"))

    def show_success(self, message: str):
        """Show success message."""
        self.console.print(Text(f"✓ {message}", style="green"))
