"""
CLI interface for siteaudit.

Usage:
    siteaudit lighthouse.json                 # Top-level config
    siteaudit lighthouse.json staging         # Apply the "staging" group
    siteaudit lighthouse.json staging -v      # Debug logging

Exit code: 0 if every cell passed or warned, 1 on any fail or config error.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from siteaudit.config import AuditConfig, resolve_config
from siteaudit.core.base_engine import BaseEngine
from siteaudit.core.exceptions import ConfigError
from siteaudit.core.models import GradeReport
from siteaudit.engines import create_engine
from siteaudit.grader import Grader
from siteaudit.orchestrator import AuditScheduler
from siteaudit.reports.generator import Reporter, exit_code
from siteaudit.settings import Settings, get_settings
from siteaudit.store import ResultStore

app = typer.Typer(
    name="siteaudit",
    help="Lighthouse threshold checks for a list of pages",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, level: str = "INFO"):
    """Настроить логирование."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else level.upper(),
        format="%(name)s - %(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    # httpx логирует каждый запрос на INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


async def run_audit(
    config: AuditConfig,
    settings: Settings,
    engine: Optional[BaseEngine] = None,
    output: Optional[Console] = None,
) -> GradeReport:
    """
    Полный прогон: аудиты -> сохранение -> оценка -> таблицы.

    Returns:
        GradeReport по всем стратегиям
    """
    engine = engine or create_engine(config, settings)
    store = ResultStore(config.results_dir)

    async with engine:
        results = await AuditScheduler(engine, store).run_config(config)

    grade_report = Grader(config).grade(results)

    reporter = Reporter()
    for report in grade_report.reports:
        reporter.print(report, config, console=output or console)

    return grade_report


@app.command()
def main(
    config_path: Path = typer.Argument(..., help="Path to the JSON config file"),
    group: Optional[str] = typer.Argument(None, help="Config group to apply (e.g. production)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """🔦 Audit the configured URLs and fail on scores below threshold."""
    settings = get_settings()
    setup_logging(verbose, settings.log_level)

    try:
        config = resolve_config(config_path, group)
    except ConfigError as e:
        err_console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    grade_report = asyncio.run(run_audit(config, settings))

    code = exit_code(grade_report)
    logger.debug(f"Summary: {grade_report.to_dict()}, exit code {code}")
    raise typer.Exit(code)


if __name__ == "__main__":
    app()
