"""
Report rendering for graded results.

Generates:
- One table per strategy (row per URL, column per category)
- A one-line summary per strategy
- The process exit code
"""

import io
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..config import AuditConfig
from ..core.models import GradeReport, StrategyReport, Verdict


VERDICT_MARKERS = {
    Verdict.PASS: "✅",
    Verdict.WARN: "⚠",
    Verdict.FAIL: "❌",
}

VERDICT_STYLES = {
    Verdict.PASS: "green",
    Verdict.WARN: "yellow",
    Verdict.FAIL: "red",
}


def _number(value: float) -> str:
    return f"{value:g}"


def summary_line(report: StrategyReport) -> str:
    """Итоговая строка для стратегии."""
    summary = report.summary
    if not summary.failed:
        return "All tests passed."
    if summary.failed == summary.total:
        return "All tests failed!"
    return f"{summary.failed}/{summary.total} tests failed!"


def exit_code(grade_report: GradeReport, fatal: bool = False) -> int:
    """0 если нет ни одного fail и не было фатальной ошибки, иначе 1."""
    if fatal or grade_report.has_failures:
        return 1
    return 0


class Reporter:
    """Генератор таблиц результатов."""

    def __init__(self, width: int = 160):
        """
        Args:
            width: Ширина таблицы при рендеринге в строку
        """
        self.width = width

    def build_table(self, report: StrategyReport, config: AuditConfig) -> Table:
        table = Table(show_lines=False)
        table.add_column("URL", overflow="fold")
        for category, thresholds in config.categories.items():
            table.add_column(
                f"{category.upper()} ({_number(thresholds.threshold_for(report.strategy))})",
                justify="right",
            )

        for row in report.rows:
            cells = [
                Text(f"{VERDICT_MARKERS[cell.verdict]} {cell.display_score}", style=VERDICT_STYLES[cell.verdict])
                for cell in row.cells
            ]
            table.add_row(row.url, *cells)

        return table

    def print(self, report: StrategyReport, config: AuditConfig, console: Optional[Console] = None) -> None:
        """Вывести заголовок, таблицу и итог в консоль."""
        console = console or Console()
        console.print(Text(report.strategy.upper(), style="bold blue"))
        console.print(self.build_table(report, config))

        style = "red" if report.summary.failed else "green"
        console.print(Text(summary_line(report), style=style))
        console.print()

    def render(self, report: StrategyReport, config: AuditConfig) -> str:
        """Отрендерить отчёт стратегии в текст без цветов."""
        buffer = io.StringIO()
        console = Console(file=buffer, width=self.width, color_system=None, force_terminal=False)
        self.print(report, config, console=console)
        return buffer.getvalue()
