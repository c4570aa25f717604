"""
Persistence of raw audit payloads.

Files: ``{results_dir}/{YYYY-MM-DD}-{slugified-url}-{strategy}.json``.
A second save with the same id (same day, URL and strategy) overwrites the first.
"""

import json
import logging
import re
from datetime import date
from pathlib import Path
from typing import Any, Optional, Union

from siteaudit.core.exceptions import ResultStoreError

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_UNSAFE_RE = re.compile(r"[^a-z0-9._]+")


def _slug(value: str) -> str:
    return _UNSAFE_RE.sub("-", value.lower()).strip("-.")


def slugify_url(url: str) -> str:
    """``https://Example.com/a b/?x=1`` -> ``example.com-a-b-x-1``."""
    return _slug(_SCHEME_RE.sub("", url)) or "root"


class ResultStore:
    """Хранилище сырых результатов аудита."""

    def __init__(self, results_dir: Union[str, Path]):
        """
        Args:
            results_dir: Директория для JSON-файлов (создаётся при первой записи)
        """
        self.results_dir = Path(results_dir)

    @staticmethod
    def result_id(url: str, strategy: str, day: Optional[date] = None) -> str:
        day = day or date.today()
        # Стратегия тоже попадает в имя файла: без "/" и ".."
        return f"{day.strftime('%Y-%m-%d')}-{slugify_url(url)}-{_slug(strategy) or 'default'}"

    def path_for(self, result_id: str) -> Path:
        return self.results_dir / f"{result_id}.json"

    def save(self, result_id: str, payload: Any) -> Path:
        """
        Записать payload как JSON.

        Returns:
            Путь к файлу

        Raises:
            ResultStoreError: не удалось создать директорию или записать файл
        """
        path = self.path_for(result_id)
        try:
            self.results_dir.mkdir(parents=True, exist_ok=True)
            if path.exists():
                logger.debug(f"Overwriting {path}")
            with open(path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent="\t", ensure_ascii=False)
        except (OSError, TypeError, ValueError) as e:
            raise ResultStoreError(f"Could not write {path}: {e}") from e

        logger.debug(f"Saved {path}")
        return path

    def load(self, result_id: str) -> Any:
        """Прочитать сохранённый payload."""
        with open(self.path_for(result_id), "r", encoding="utf-8") as f:
            return json.load(f)
