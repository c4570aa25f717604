"""
Audit scheduler: dispatches (strategy x URL) audits to an engine.

Two policies, chosen by the engine:
- remote-api: strategies one after another; URLs in chunks of ``batch_size``,
  each chunk concurrently, next chunk after the whole chunk resolved
- local-tool: every audit strictly sequential

Results per strategy keep the configured URL order.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from siteaudit.config import AuditConfig
from siteaudit.core.base_engine import BaseEngine
from siteaudit.core.exceptions import ResultStoreError
from siteaudit.core.models import AuditRequest, AuditResult, ErrorKind
from siteaudit.store import ResultStore


logger = logging.getLogger(__name__)


def chunked(items: Sequence[Any], size: int) -> List[Sequence[Any]]:
    """Разбить на последовательные куски размером не больше size."""
    if size <= 0:
        raise ValueError("size must be positive")
    return [items[i:i + size] for i in range(0, len(items), size)]


class AuditScheduler:
    """Планировщик аудитов."""

    def __init__(self, engine: BaseEngine, store: Optional[ResultStore] = None):
        """
        Args:
            engine: Движок аудита
            store: Хранилище сырых результатов (None = не сохранять)
        """
        self.engine = engine
        self.store = store

    async def run(
        self,
        strategies: Sequence[str],
        urls: Sequence[str],
        categories: Sequence[str],
        batch_size: int,
        search_params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, List[AuditResult]]:
        """
        Запустить аудиты для всех пар (стратегия, URL).

        Returns:
            strategy -> результаты в порядке urls
        """
        results: Dict[str, List[AuditResult]] = {}

        for strategy in strategies:
            requests = [
                AuditRequest(
                    url=url,
                    strategy=strategy,
                    categories=list(categories),
                    search_params=dict(search_params or {}),
                )
                for url in urls
            ]

            if self.engine.EXCLUSIVE:
                logger.info(f"[{strategy}] Running {len(requests)} audits sequentially...")
                results[strategy] = await self._run_sequential(requests)
            else:
                logger.info(f"[{strategy}] Running {len(requests)} audits in batches of {batch_size}...")
                results[strategy] = await self._run_batched(requests, batch_size)

            failed = sum(1 for result in results[strategy] if not result.ok)
            logger.info(f"[{strategy}] Done: {len(requests) - failed} ok, {failed} failed")

        return results

    async def run_config(self, config: AuditConfig) -> Dict[str, List[AuditResult]]:
        """Запустить аудиты по активной конфигурации."""
        return await self.run(
            strategies=config.strategies,
            urls=config.urls,
            categories=config.category_names,
            batch_size=config.batch_size,
            search_params=config.search_params,
        )

    async def _run_batched(self, requests: List[AuditRequest], batch_size: int) -> List[AuditResult]:
        results = []
        batches = chunked(requests, batch_size)
        for i, batch in enumerate(batches, 1):
            if len(batches) > 1:
                logger.info(f"  Batch {i}/{len(batches)}: {len(batch)} audits")
            results.extend(await self._run_batch(batch))
        return results

    async def _run_batch(self, batch: Sequence[AuditRequest]) -> List[AuditResult]:
        """Запустить батч параллельно; gather сохраняет порядок."""
        outcomes = await asyncio.gather(
            *(self._audit_one(request) for request in batch),
            return_exceptions=True,
        )

        processed = []
        for request, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException):
                # Движок не должен бросать, но один сбой не должен ронять батч
                logger.error(f"Audit {request.url} ({request.strategy}) failed: {outcome}")
                outcome = AuditResult.failed(request, f"{type(outcome).__name__}: {outcome}", ErrorKind.TOOL_CRASH)
            processed.append(outcome)
        return processed

    async def _run_sequential(self, requests: List[AuditRequest]) -> List[AuditResult]:
        results = []
        for i, request in enumerate(requests, 1):
            logger.debug(f"[{i}/{len(requests)}] {request.url} ({request.strategy})")
            try:
                result = await self._audit_one(request)
            except Exception as e:
                logger.error(f"Audit {request.url} ({request.strategy}) failed: {e}", exc_info=True)
                result = AuditResult.failed(request, f"{type(e).__name__}: {e}", ErrorKind.TOOL_CRASH)
            results.append(result)
        return results

    async def _audit_one(self, request: AuditRequest) -> AuditResult:
        result = await self.engine.run_audit(request)
        self._persist(result)
        return result

    def _persist(self, result: AuditResult) -> None:
        if self.store is None or result.payload is None:
            return

        result_id = self.store.result_id(result.url, result.strategy)
        try:
            result.saved_path = self.store.save(result_id, result.payload)
        except ResultStoreError as e:
            # Результат остаётся в памяти и участвует в оценке
            logger.error(str(e))
