"""
Threshold grading.

    score <  lowerThreshold              -> fail
    lowerThreshold <= score < threshold  -> warn
    score >= threshold                   -> pass

A missing score (engine failure or category absent from the result) is a fail.
"""

import logging
from typing import Dict, List, Optional

from siteaudit.config import AuditConfig
from siteaudit.core.models import (
    AuditResult,
    GradedCell,
    GradedRow,
    GradeReport,
    StrategyReport,
    StrategySummary,
    Verdict,
)

logger = logging.getLogger(__name__)


def verdict(score: Optional[float], threshold: float, lower_threshold: float) -> Verdict:
    if score is None or score < lower_threshold:
        return Verdict.FAIL
    if score < threshold:
        return Verdict.WARN
    return Verdict.PASS


class Grader:
    """Оценка результатов по порогам из конфигурации."""

    def __init__(self, config: AuditConfig):
        self.config = config

    def grade_result(self, result: AuditResult) -> GradedRow:
        """Одна ячейка на каждую категорию конфигурации, в её порядке."""
        unknown = set(result.scores) - set(self.config.categories)
        if unknown:
            logger.debug(f"Ignoring unconfigured categories for {result.url}: {sorted(unknown)}")

        cells = []
        for category, thresholds in self.config.categories.items():
            score = result.scores.get(category)
            cells.append(GradedCell(
                category=category,
                score=score,
                verdict=verdict(
                    score,
                    thresholds.threshold_for(result.strategy),
                    thresholds.lower_for(result.strategy),
                ),
            ))
        return GradedRow(url=result.url, cells=cells, error=result.error)

    def grade_strategy(self, strategy: str, results: List[AuditResult]) -> StrategyReport:
        summary = StrategySummary()
        rows = []
        for result in results:
            row = self.grade_result(result)
            for cell in row.cells:
                summary.add(cell.verdict)
            rows.append(row)

        logger.debug(f"[{strategy}] {summary.to_dict()}")
        return StrategyReport(strategy=strategy, rows=rows, summary=summary)

    def grade(self, results: Dict[str, List[AuditResult]]) -> GradeReport:
        """
        Оценить результаты всех стратегий.

        Args:
            results: strategy -> результаты в порядке URL

        Returns:
            GradeReport в порядке стратегий конфигурации
        """
        reports = []
        for strategy in self.config.strategies:
            if strategy not in results:
                continue
            reports.append(self.grade_strategy(strategy, results[strategy]))
        return GradeReport(reports=reports)


def grade(results: Dict[str, List[AuditResult]], config: AuditConfig) -> GradeReport:
    return Grader(config).grade(results)
