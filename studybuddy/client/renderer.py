"""
Rich rendering of assistant message text.

Assistant replies may embed one of two fenced sub-formats produced by the
model:

    ```mermaid            diagram description
    ```chart-json         bar chart data (list of records, or
                          {"data": [...], "xKey": ..., "yKey": ...})

Only the first matching block type is rendered, in that priority order.
Anything else is plain Markdown.
"""

import json
import logging
import math
import re
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from rich.console import RenderableType
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

logger = logging.getLogger(__name__)

MERMAID_BLOCK_RE = re.compile(r"```mermaid[ \t]*\r?\n(.*?)```", re.DOTALL | re.IGNORECASE)
CHART_BLOCK_RE = re.compile(r"```chart-json[ \t]*\r?\n(.*?)```", re.DOTALL | re.IGNORECASE)

DEFAULT_X_KEY = "name"
DEFAULT_Y_KEY = "value"
BAR_WIDTH = 40


class RenderKind(Enum):
    DIAGRAM = "diagram"
    CHART = "chart"
    MARKDOWN = "markdown"


def render_diagram(code: str) -> RenderableType:
    """Show a Mermaid diagram description in a highlighted panel."""
    syntax = Syntax(code.strip(), "text", word_wrap=True)
    return Panel(syntax, title="[bold magenta]📈 Diagram (mermaid)[/bold magenta]", border_style="magenta")


def invalid_chart(reason: str = "Invalid chart data") -> RenderableType:
    return Panel(Text(reason, style="bold red"), title="📊 Chart", border_style="red")


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    # "NaN", "inf" and 1e400 all parse; none of them can be drawn.
    return number if math.isfinite(number) else None


def render_chart(data: Any, x_key: str = DEFAULT_X_KEY, y_key: str = DEFAULT_Y_KEY) -> RenderableType:
    """Draw a horizontal bar chart from a list of records."""
    if not isinstance(data, list):
        return invalid_chart()

    rows = []
    for record in data:
        if not isinstance(record, dict):
            continue
        value = _as_number(record.get(y_key))
        rows.append((str(record.get(x_key, "")), value))

    if not rows:
        return invalid_chart()

    peak = max((abs(v) for _, v in rows if v is not None), default=0.0)
    table = Table(title="📊 Chart", show_header=True, header_style="bold cyan")
    table.add_column(x_key, style="cyan", no_wrap=True)
    table.add_column(y_key, justify="right")
    table.add_column("", style="blue")

    for label, value in rows:
        if value is None:
            table.add_row(label, "-", "")
            continue
        length = int(round(BAR_WIDTH * abs(value) / peak)) if peak else 0
        shown = f"{value:g}"
        table.add_row(label, shown, "█" * length)
    return table


class ContentRenderer:
    """Chooses how to paint a (possibly partial) message buffer.

    The collaborators are injectable so the priority logic can be checked
    without a terminal.
    """

    def __init__(self,
                 diagram_renderer: Callable[[str], RenderableType] = render_diagram,
                 chart_renderer: Callable[..., RenderableType] = render_chart,
                 markdown_renderer: Callable[[str], RenderableType] = Markdown,
                 fallback_renderer: Callable[[str], RenderableType] = invalid_chart):
        self.diagram_renderer = diagram_renderer
        self.chart_renderer = chart_renderer
        self.markdown_renderer = markdown_renderer
        self.fallback_renderer = fallback_renderer

    @staticmethod
    def classify(text: str) -> Tuple[RenderKind, str]:
        """Return the block kind to render and its inner text."""
        match = MERMAID_BLOCK_RE.search(text)
        if match:
            return RenderKind.DIAGRAM, match.group(1)
        match = CHART_BLOCK_RE.search(text)
        if match:
            return RenderKind.CHART, match.group(1)
        return RenderKind.MARKDOWN, text

    def render(self, text: str) -> RenderableType:
        kind, body = self.classify(text)
        if kind is RenderKind.DIAGRAM:
            return self.diagram_renderer(body)
        if kind is RenderKind.CHART:
            return self._render_chart(body)
        return self.markdown_renderer(text)

    def _render_chart(self, body: str) -> RenderableType:
        try:
            data = json.loads(body)
        except ValueError as e:
            logger.debug("Invalid chart-json block: %s", e)
            return self.fallback_renderer("Invalid chart data")

        try:
            if isinstance(data, dict) and "data" in data:
                return self.chart_renderer(
                    data["data"],
                    x_key=str(data.get("xKey", DEFAULT_X_KEY)),
                    y_key=str(data.get("yKey", DEFAULT_Y_KEY)),
                )
            return self.chart_renderer(data)
        except Exception as e:
            # A bad chart must not take the conversation down with it.
            logger.warning("Chart rendering failed: %s", e)
            return self.fallback_renderer("Invalid chart data")
