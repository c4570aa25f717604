"""
Property-based и unit тесты оценки по порогам.
"""

import pytest
from hypothesis import HealthCheck, assume, given, settings, strategies as st

from siteaudit.core.models import AuditResult, Verdict
from siteaudit.grader import Grader, grade, verdict


scores = st.floats(min_value=0, max_value=100, allow_nan=False)


class TestVerdict:
    """fail < L <= warn < T <= pass"""

    @settings(max_examples=200)
    @given(score=scores, threshold=scores, lower=scores)
    def test_verdict_rule(self, score, threshold, lower):
        assume(lower <= threshold)
        result = verdict(score, threshold, lower)

        assert (result == Verdict.FAIL) == (score < lower)
        assert (result == Verdict.WARN) == (lower <= score < threshold)
        assert (result == Verdict.PASS) == (score >= threshold)

    @pytest.mark.parametrize("score,expected", [
        (40, Verdict.FAIL),
        (50, Verdict.WARN),
        (65, Verdict.WARN),
        (70, Verdict.PASS),
        (85, Verdict.PASS),
    ])
    def test_examples(self, score, expected):
        assert verdict(score, 70, 50) == expected

    def test_missing_score_fails(self):
        assert verdict(None, 0, 0) == Verdict.FAIL


class TestGrader:
    """Тесты Grader"""

    @pytest.fixture
    def config(self, make_config):
        return make_config(
            categories={
                "performance": {"threshold": {"mobile": 70}},
                "seo": {"threshold": {"mobile": 90}, "lowerThreshold": {"mobile": 80}},
            },
            urls=["https://a.test", "https://b.test", "https://c.test"],
        )

    def test_cells_follow_config_order(self, config):
        result = AuditResult(url="https://a.test", strategy="mobile", scores={"seo": 85.0, "performance": 95.0})

        row = Grader(config).grade_result(result)

        assert [cell.category for cell in row.cells] == ["performance", "seo"]
        assert [cell.verdict for cell in row.cells] == [Verdict.PASS, Verdict.WARN]
        assert row.cells[0].score == 95.0

    def test_empty_scores_fail_every_category(self, config):
        result = AuditResult(url="https://a.test", strategy="mobile", error="backend unavailable")

        row = Grader(config).grade_result(result)

        assert [cell.verdict for cell in row.cells] == [Verdict.FAIL, Verdict.FAIL]
        assert all(cell.score is None for cell in row.cells)
        assert row.error == "backend unavailable"

    def test_missing_category_fails(self, config):
        result = AuditResult(url="https://a.test", strategy="mobile", scores={"performance": 99.0})
        row = Grader(config).grade_result(result)
        assert row.cells[1].verdict == Verdict.FAIL

    def test_unknown_category_ignored(self, config):
        result = AuditResult(
            url="https://a.test",
            strategy="mobile",
            scores={"performance": 99.0, "seo": 99.0, "pwa": 3.0},
        )
        row = Grader(config).grade_result(result)
        assert [cell.category for cell in row.cells] == ["performance", "seo"]
        assert all(cell.verdict == Verdict.PASS for cell in row.cells)

    def test_summary_counts(self, config):
        results = {
            "mobile": [
                AuditResult(url="https://a.test", strategy="mobile", scores={"performance": 95.0, "seo": 95.0}),
                AuditResult(url="https://b.test", strategy="mobile", scores={"performance": 60.0, "seo": 70.0}),
                AuditResult(url="https://c.test", strategy="mobile"),
            ]
        }

        report = grade(results, config)
        summary = report.get("mobile").summary

        assert summary.to_dict() == {"pass": 2, "warn": 1, "fail": 3, "total": 6}
        fail_cells = [c for row in report.get("mobile").cells for c in row if c.verdict == Verdict.FAIL]
        assert summary.failed == len(fail_cells)
        assert report.has_failures
        assert report.exit_code == 1

    def test_rows_keep_result_order(self, config):
        urls = ["https://c.test", "https://a.test", "https://b.test"]
        results = {"mobile": [AuditResult(url=u, strategy="mobile", scores={"performance": 90.0, "seo": 90.0}) for u in urls]}

        report = grade(results, config)

        assert [row.url for row in report.get("mobile").rows] == urls
        assert report.exit_code == 0

    def test_per_strategy_thresholds(self, make_config):
        config = make_config(
            categories={"performance": {"threshold": {"mobile": 50, "desktop": 90}}},
            strategies=["mobile", "desktop"],
        )
        results = {
            "mobile": [AuditResult(url="https://a.test", strategy="mobile", scores={"performance": 60.0})],
            "desktop": [AuditResult(url="https://a.test", strategy="desktop", scores={"performance": 60.0})],
        }

        report = grade(results, config)

        assert report.get("mobile").rows[0].cells[0].verdict == Verdict.PASS
        assert report.get("desktop").rows[0].cells[0].verdict == Verdict.WARN
        assert [r.strategy for r in report.reports] == ["mobile", "desktop"]
        assert not report.has_failures

    @settings(max_examples=50, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(values=st.lists(st.one_of(st.none(), scores), min_size=1, max_size=10))
    def test_fail_count_equals_fail_cells(self, make_config, values):
        config = make_config()
        results = {
            "mobile": [
                AuditResult(
                    url="https://a.test",
                    strategy="mobile",
                    scores={} if value is None else {"performance": value},
                )
                for value in values
            ]
        }

        summary = grade(results, config).get("mobile").summary
        expected = sum(1 for v in values if v is None or v < 50)

        assert summary.failed == expected
        assert summary.total == len(values)
        assert summary.passed + summary.warned + summary.failed == summary.total
