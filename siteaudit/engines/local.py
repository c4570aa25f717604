"""
Local Lighthouse engine (local-tool).

Запускает ``lighthouse`` CLI (Node.js + headless Chrome) и читает LHR из stdout.
Браузер и его порт — эксклюзивный ресурс, поэтому одновременно
выполняется только один аудит.
"""

import asyncio
import json
import shlex
from typing import Any, Dict, List, Optional, Tuple

from siteaudit.core.base_engine import BaseEngine, extract_scores
from siteaudit.core.exceptions import EngineError
from siteaudit.core.models import AuditRequest, ErrorKind

DESKTOP_STRATEGY = "desktop"


class LighthouseEngine(BaseEngine):
    """Аудит локальным lighthouse."""

    EXCLUSIVE = True

    def __init__(
        self,
        lighthouse_bin: str = "lighthouse",
        chrome_flags: str = "--headless=new",
        timeout_seconds: Optional[float] = None,
    ):
        super().__init__("lighthouse", timeout_seconds)
        self.lighthouse_bin = lighthouse_bin
        self.chrome_flags = chrome_flags
        self._lock = asyncio.Lock()

    def build_command(self, request: AuditRequest) -> List[str]:
        """Аргументы lighthouse CLI; стратегия выбирает профиль устройства."""
        cmd = shlex.split(self.lighthouse_bin) + [
            request.target_url,
            "--output=json",
            "--output-path=stdout",
            "--quiet",
            f"--chrome-flags={self.chrome_flags}",
            f"--only-categories={','.join(request.categories)}",
        ]
        if request.strategy == DESKTOP_STRATEGY:
            cmd.append("--preset=desktop")
        else:
            cmd.append("--form-factor=mobile")
        return cmd

    async def _run_lighthouse(self, cmd: List[str]) -> Tuple[int, bytes, bytes]:
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise EngineError(f"lighthouse binary not found: {cmd[0]}", ErrorKind.TOOL_CRASH) from e

        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            # Таймаут: не оставлять Chrome висеть
            process.kill()
            await process.wait()
            raise

        return process.returncode, stdout, stderr

    async def _audit(self, request: AuditRequest) -> Tuple[Dict[str, float], Dict[str, Any]]:
        async with self._lock:
            returncode, stdout, stderr = await self._run_lighthouse(self.build_command(request))

        if returncode != 0:
            tail = stderr.decode("utf-8", errors="replace").strip()[-500:]
            raise EngineError(f"lighthouse exited with code {returncode}: {tail}", ErrorKind.TOOL_CRASH)

        try:
            lighthouse_result = json.loads(stdout)
        except ValueError as e:
            raise EngineError("lighthouse output is not valid JSON", ErrorKind.MALFORMED_RESPONSE) from e

        runtime_error = lighthouse_result.get("runtimeError") if isinstance(lighthouse_result, dict) else None
        if isinstance(runtime_error, dict) and runtime_error.get("code"):
            raise EngineError(
                f"lighthouse runtime error {runtime_error.get('code')}: {runtime_error.get('message', '')}",
                ErrorKind.TOOL_CRASH,
            )

        return extract_scores(lighthouse_result), lighthouse_result
