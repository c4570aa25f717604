"""Тесты рендеринга таблиц и кода возврата."""

import pytest

from siteaudit.core.models import AuditResult, GradeReport
from siteaudit.grader import Grader
from siteaudit.reports.generator import Reporter, exit_code, summary_line


@pytest.fixture
def config(make_config):
    return make_config(
        categories={
            "performance": {"threshold": {"mobile": 70}},
            "accessibility": {"threshold": {"mobile": 95}},
        },
        urls=["https://a.test", "https://b.test"],
    )


def strategy_report(config, *score_maps):
    results = [
        AuditResult(url=url, strategy="mobile", scores=scores)
        for url, scores in zip(config.urls, score_maps)
    ]
    return Grader(config).grade_strategy("mobile", results)


def test_table_contents(config):
    report = strategy_report(
        config,
        {"performance": 84.6, "accessibility": 96.0},
        {"performance": 65.2, "accessibility": 12.0},
    )

    text = Reporter(width=200).render(report, config)

    assert "MOBILE" in text
    assert "PERFORMANCE (70)" in text
    assert "ACCESSIBILITY (95)" in text
    assert "https://a.test" in text
    assert "✅ 85" in text
    assert "⚠ 65" in text
    assert "❌ 12" in text
    assert "1/4 tests failed!" in text


def test_engine_failure_rendered_as_na(config):
    report = strategy_report(config, {}, {})
    text = Reporter(width=200).render(report, config)

    assert "❌ n/a" in text
    assert "All tests failed!" in text


def test_all_passed(config):
    report = strategy_report(config, {"performance": 99, "accessibility": 99}, {"performance": 70, "accessibility": 95})
    assert summary_line(report) == "All tests passed."


def test_warnings_do_not_fail(config):
    report = strategy_report(config, {"performance": 69, "accessibility": 60}, {"performance": 50, "accessibility": 94})

    assert summary_line(report) == "All tests passed."
    assert exit_code(GradeReport(reports=[report])) == 0


def test_exit_code(config):
    failing = strategy_report(config, {"performance": 10, "accessibility": 99}, {"performance": 99, "accessibility": 99})
    passing = strategy_report(config, {"performance": 99, "accessibility": 99}, {"performance": 99, "accessibility": 99})

    assert exit_code(GradeReport(reports=[passing])) == 0
    assert exit_code(GradeReport(reports=[passing, failing])) == 1
    assert exit_code(GradeReport(reports=[passing]), fatal=True) == 1
    assert exit_code(GradeReport(reports=[])) == 0
