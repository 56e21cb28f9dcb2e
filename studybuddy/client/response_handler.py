"""
Terminal display of assistant replies, static and streaming.

Learning Points:
- rich.live.Live repaints one region in place, so a growing reply reads
  like typing instead of scrolling the terminal
- Rendering happens on every delta against a partial document; a fenced
  block only switches to its diagram or chart view once it is closed
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from rich.console import Console, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.spinner import Spinner
from rich.text import Text

from .renderer import ContentRenderer

logger = logging.getLogger(__name__)

ASSISTANT_TITLE = "🤖 Study Buddy"
EMPTY_REPLY = "(no response)"


class StreamView:
    """Repaints one assistant panel as the reply grows."""

    def __init__(self, live: Live, handler: 'ResponseHandler'):
        self.live = live
        self.handler = handler
        self.repaints = 0

    def update(self, text: str) -> None:
        self.live.update(self.handler.assistant_panel(text, streaming=True))
        self.repaints += 1

    def finalize(self, text: str) -> None:
        """Paint the finished reply, replacing the spinner if nothing arrived."""
        if text:
            self.live.update(self.handler.assistant_panel(text))
        else:
            self.live.update(self.handler.empty_panel())

    def fail(self, message: str) -> None:
        self.live.update(self.handler.assistant_panel(message, is_error=True))


class ResponseHandler:
    """Handles how assistant responses are shown."""

    def __init__(self, console: Optional[Console] = None, renderer: Optional[ContentRenderer] = None):
        self.console = console or Console()
        self.renderer = renderer or ContentRenderer()

    def render_content(self, content: str) -> RenderableType:
        """Render message text, falling back to plain text if rendering fails.

        The content renderer already replaces broken charts inline. This is
        the last line of defence for anything else, so a single odd reply
        can never end the REPL.
        """
        try:
            return self.renderer.render(content)
        except Exception as e:
            logger.warning("Rendering failed, showing plain text: %s", e)
            return Text(content)

    def assistant_panel(self, content: str, streaming: bool = False, is_error: bool = False) -> Panel:
        title = ASSISTANT_TITLE + (" (streaming)" if streaming else "")
        border = "red" if is_error else "blue"
        return Panel(self.render_content(content), title=f"[bold {border}]{title}[/bold {border}]",
                     border_style=border)

    def empty_panel(self) -> Panel:
        return Panel(Text(EMPTY_REPLY, style="dim italic"), title=f"[bold blue]{ASSISTANT_TITLE}[/bold blue]",
                     border_style="blue")

    def display_response(self, content: str, is_error: bool = False) -> None:
        """Display a finished reply with rich formatting."""
        self.console.print(self.assistant_panel(content, is_error=is_error))

    @contextmanager
    def live_display(self) -> Iterator[StreamView]:
        """Live region for a streaming reply, showing a spinner until the first delta."""
        waiting = Panel(Spinner("dots", text="Thinking..."), title=f"[bold blue]{ASSISTANT_TITLE}[/bold blue]",
                        border_style="blue")
        with Live(waiting, console=self.console, refresh_per_second=10) as live:
            yield StreamView(live, self)
