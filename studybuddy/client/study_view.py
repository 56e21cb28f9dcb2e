"""
Rich rendering of study materials and weekly schedules.

Model text is wrapped in ``Text`` before it goes into tables and panels,
so square brackets in a question are shown as written instead of being
read as console markup.
"""

from typing import Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from studybuddy.materials import QuizQuestion, StudyMaterials, StudySchedule

from .response_handler import ResponseHandler

OPTION_LETTERS = "ABCDEFGHIJ"


def option_label(index: int) -> str:
    return OPTION_LETTERS[index] if index < len(OPTION_LETTERS) else str(index + 1)


class StudyView:
    """Draws StudyMaterials and StudySchedule documents on the console."""

    def __init__(self, console: Console, response_handler: Optional[ResponseHandler] = None):
        self.console = console
        self.response_handler = response_handler or ResponseHandler(console)

    def show_materials(self, materials: StudyMaterials, topic: str) -> None:
        """Explanation, flashcards, quiz (answers hidden) and study tips."""
        self.console.print(Panel(
            self.response_handler.render_content(materials.explanation),
            title=f"[bold blue]📖 {topic}[/bold blue]",
            border_style="blue",
        ))
        self.show_flashcards(materials)
        self.show_quiz(materials)
        self.show_tips(materials)

    def show_flashcards(self, materials: StudyMaterials) -> None:
        if not materials.flashcards:
            return
        table = Table(title="🃏 Flashcards", show_lines=True)
        table.add_column("#", style="cyan", no_wrap=True)
        table.add_column("Question", style="bold")
        table.add_column("Answer")
        for i, card in enumerate(materials.flashcards, 1):
            table.add_row(str(i), Text(card.question), Text(card.answer))
        self.console.print(table)

    def show_quiz(self, materials: StudyMaterials, reveal: bool = False) -> None:
        """One panel per question; ``reveal`` marks the answer and adds the explanation."""
        if not materials.quiz:
            return
        self.console.print(Text("📝 Quiz", style="bold"))
        for i, question in enumerate(materials.quiz, 1):
            self.console.print(self._question_panel(i, question, reveal))
        if not reveal:
            self.console.print(Text("Type /answers to check yourself, /newquiz for new questions.", style="dim"))

    def show_tips(self, materials: StudyMaterials) -> None:
        if not materials.study_tips:
            return
        tips = Text()
        for i, tip in enumerate(materials.study_tips, 1):
            if i > 1:
                tips.append("\n")
            tips.append(f"{i}. ", style="cyan")
            tips.append(tip)
        self.console.print(Panel(tips, title="💡 Study Tips", border_style="green"))

    def show_schedule(self, schedule: StudySchedule) -> None:
        table = Table(title="📅 Weekly Study Plan")
        table.add_column("Day", style="cyan", no_wrap=True)
        table.add_column("Time", no_wrap=True)
        table.add_column("Topic")
        for plan in schedule.ordered():
            table.add_row(plan.day_name, f"{plan.start_time}–{plan.end_time}", Text(plan.topic))
        self.console.print(table)

    @staticmethod
    def _question_panel(number: int, question: QuizQuestion, reveal: bool) -> Panel:
        body = Text()
        body.append(question.question, style="bold")
        for index, option in enumerate(question.options):
            correct = reveal and index == question.correct_index
            body.append("\n")
            body.append(f"{'✓' if correct else ' '} {option_label(index)}) ",
                        style="green" if correct else "cyan")
            body.append(option, style="green" if correct else "")
        parts = [body]
        if reveal and question.explanation:
            parts.append(Text(question.explanation, style="dim italic"))
        return Panel(Group(*parts), title=f"Question {number}", border_style="magenta")
