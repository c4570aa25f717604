"""
Pytest configuration and fixtures.

Использование:
    pytest tests/ -v
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import pytest

from siteaudit.config import AuditConfig
from siteaudit.core.base_engine import BaseEngine
from siteaudit.core.exceptions import EngineError
from siteaudit.core.models import AuditRequest, ErrorKind


# ═══════════════════════════════════════════════════════
# FAKE ENGINES
# ═══════════════════════════════════════════════════════

class FakeEngine(BaseEngine):
    """
    Движок без сети: scores берутся из словаря url -> {category: score}.

    Считает одновременно выполняемые аудиты (in_flight / max_in_flight)
    и запоминает порядок вызовов, а также время начала и конца
    каждого аудита (starts / ends: url -> loop.time()).
    """

    EXCLUSIVE = False

    def __init__(
        self,
        scores: Optional[Dict[str, Dict[str, float]]] = None,
        failing: Iterable[str] = (),
        delays: Optional[Dict[str, float]] = None,
        crashing: Iterable[str] = (),
    ):
        super().__init__("fake")
        self.scores = scores or {}
        self.failing = set(failing)
        self.crashing = set(crashing)
        self.delays = delays or {}
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls = []
        self.starts = {}
        self.ends = {}
        self.closed = False

    async def _audit(self, request: AuditRequest):
        loop = asyncio.get_running_loop()
        self.calls.append((request.strategy, request.url))
        self.starts[request.url] = loop.time()
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(request.url, 0.001))
            if request.url in self.failing:
                raise EngineError("backend unavailable", ErrorKind.NETWORK)
            if request.url in self.crashing:
                raise RuntimeError("boom")
            scores = dict(self.scores.get(request.url, {c: 100.0 for c in request.categories}))
            payload = {"categories": {c: {"score": s / 100.0} for c, s in scores.items()}}
            return scores, payload
        finally:
            self.in_flight -= 1
            self.ends[request.url] = loop.time()

    async def aclose(self) -> None:
        self.closed = True


class ExclusiveFakeEngine(FakeEngine):
    """То же, но с политикой local-tool."""

    EXCLUSIVE = True


@pytest.fixture
def fake_engine_cls():
    return FakeEngine


@pytest.fixture
def exclusive_engine_cls():
    return ExclusiveFakeEngine


# ═══════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════

@pytest.fixture
def raw_config() -> Dict[str, Any]:
    """Минимальная валидная конфигурация"""
    return {
        "categories": {
            "performance": {"threshold": {"mobile": 70, "desktop": 90}},
            "accessibility": {"threshold": {"mobile": 95, "desktop": 95}, "lowerThreshold": {"mobile": 80}},
        },
        "strategies": ["mobile", "desktop"],
        "urls": ["https://a.test/", "https://b.test/about"],
        "searchParams": {"nocache": "1"},
        "groups": {
            "staging": {
                "urls": ["https://staging.a.test/"],
                "categories": {"seo": {"threshold": {"mobile": 80}}},
            },
        },
    }


@pytest.fixture
def write_config(tmp_path):
    """Записать конфигурацию во временный файл и вернуть путь"""
    def _write(data: Any, name: str = "lighthouse.json") -> Path:
        path = tmp_path / name
        if isinstance(data, str):
            path.write_text(data, encoding="utf-8")
        else:
            path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_config(tmp_path):
    """Собрать AuditConfig напрямую (без файла)"""
    def _make(**overrides) -> AuditConfig:
        data = {
            "categories": {"performance": {"threshold": {"mobile": 70}}},
            "strategies": ["mobile"],
            "urls": ["https://a.test"],
            "resultsDir": str(tmp_path / "reports"),
        }
        data.update(overrides)
        return AuditConfig.model_validate(data)

    return _make


# ═══════════════════════════════════════════════════════
# MARKERS
# ═══════════════════════════════════════════════════════

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
