"""
Core data models for siteaudit.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


class Engine(str, Enum):
    """Движок аудита."""
    REMOTE_API = "remote-api"   # PageSpeed Insights API
    LOCAL_TOOL = "local-tool"   # Локальный lighthouse + headless Chrome


class ErrorKind(Enum):
    """Тип ошибки движка."""
    NETWORK = "network"
    MALFORMED_RESPONSE = "malformed_response"
    TOOL_CRASH = "tool_crash"
    TIMEOUT = "timeout"


class Verdict(Enum):
    """Оценка одной ячейки таблицы."""
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


@dataclass(frozen=True)
class AuditRequest:
    """Одна единица работы: URL + стратегия + категории."""

    url: str
    strategy: str
    categories: List[str]
    search_params: Dict[str, str] = field(default_factory=dict)

    @property
    def target_url(self) -> str:
        """URL страницы с добавленными search params."""
        if not self.search_params:
            return self.url

        parts = urlsplit(self.url)
        query = parse_qsl(parts.query, keep_blank_values=True)
        query.extend((name, str(value)) for name, value in self.search_params.items())
        return urlunsplit(parts._replace(query=urlencode(query)))


@dataclass
class AuditResult:
    """Результат аудита одного URL для одной стратегии."""

    url: str
    strategy: str
    scores: Dict[str, float] = field(default_factory=dict)
    payload: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    duration_ms: float = 0.0
    saved_path: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.scores)

    @classmethod
    def failed(cls, request: AuditRequest, error: str, kind: ErrorKind, duration_ms: float = 0.0) -> "AuditResult":
        """Результат для запроса, который завершился ошибкой движка."""
        return cls(
            url=request.url,
            strategy=request.strategy,
            error=error,
            error_kind=kind,
            duration_ms=duration_ms,
        )


@dataclass(frozen=True)
class GradedCell:
    """Оценка одной категории для одного URL."""

    category: str
    score: Optional[float]
    verdict: Verdict

    @property
    def display_score(self) -> str:
        if self.score is None:
            return "n/a"
        # Половины вверх (84.5 -> 85), scores неотрицательные
        return str(int(self.score + 0.5))


@dataclass
class GradedRow:
    """Строка таблицы: URL и ячейки по категориям (в порядке конфигурации)."""

    url: str
    cells: List[GradedCell]
    error: Optional[str] = None


@dataclass
class StrategySummary:
    """Счётчики по одной стратегии."""

    passed: int = 0
    warned: int = 0
    failed: int = 0
    total: int = 0

    def add(self, verdict: Verdict) -> None:
        self.total += 1
        if verdict == Verdict.PASS:
            self.passed += 1
        elif verdict == Verdict.WARN:
            self.warned += 1
        else:
            self.failed += 1

    def to_dict(self) -> Dict[str, int]:
        return {
            "pass": self.passed,
            "warn": self.warned,
            "fail": self.failed,
            "total": self.total,
        }


@dataclass
class StrategyReport:
    """Оценённые результаты одной стратегии, в порядке URL из конфигурации."""

    strategy: str
    rows: List[GradedRow]
    summary: StrategySummary

    @property
    def cells(self) -> List[List[GradedCell]]:
        return [row.cells for row in self.rows]


@dataclass
class GradeReport:
    """Итог оценки по всем стратегиям."""

    reports: List[StrategyReport]

    @property
    def has_failures(self) -> bool:
        return any(report.summary.failed > 0 for report in self.reports)

    @property
    def exit_code(self) -> int:
        return 1 if self.has_failures else 0

    def get(self, strategy: str) -> Optional[StrategyReport]:
        for report in self.reports:
            if report.strategy == strategy:
                return report
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {report.strategy: report.summary.to_dict() for report in self.reports}
