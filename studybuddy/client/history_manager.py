"""
Conversation history management.
"""

from typing import Dict, List

from rich.console import Console
from rich.table import Table

from .assembler import ConversationMessage, Role


class HistoryManager:
    """Owns the ordered, append-only conversation.

    The message list is shared with the active stream session, which is
    the only writer allowed to touch the last message while a reply is
    streaming.
    """

    def __init__(self, console: Console = None):
        self.console = console or Console()
        self.messages: List[ConversationMessage] = []

    def add_message(self, role: str, content: str) -> ConversationMessage:
        """Add a message to the conversation history."""
        message = ConversationMessage(Role(role), content)
        self.messages.append(message)
        return message

    def clear_history(self) -> None:
        """Clear conversation history."""
        # Cleared in place: an abandoned session may still hold the list.
        del self.messages[:]
        self.console.print("[green]🧹 Conversation history cleared[/green]")

    def show_history(self) -> None:
        """Show conversation history."""
        if not self.messages:
            self.console.print("[dim]📝 No conversation history[/dim]")
            return

        table = Table(title="📝 Conversation History", show_header=True, header_style="bold magenta")
        table.add_column("Turn", style="cyan", no_wrap=True, width=4)
        table.add_column("Role", style="bold", width=10)
        table.add_column("Content", style="white", overflow="fold")

        for i, msg in enumerate(self.messages, 1):
            content = msg.content
            # Truncate long content for display
            if len(content) > 100:
                content = content[:97] + "..."
            table.add_row(str(i), msg.role.value.title(), content)

        self.console.print(table)

    def get_history(self) -> List[Dict[str, str]]:
        """Wire form of the conversation, in order."""
        return [msg.to_dict() for msg in self.messages]

    def last_assistant_reply(self) -> str:
        for msg in reversed(self.messages):
            if msg.is_assistant:
                return msg.content
        return ""
