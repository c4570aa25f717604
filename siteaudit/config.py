"""
Audit configuration: JSON loading, group merging and validation.

Config file example::

    {
        "categories": {
            "performance": {"threshold": {"mobile": 70, "desktop": 90}},
            "accessibility": {"threshold": {"mobile": 95}, "lowerThreshold": {"mobile": 80}}
        },
        "strategies": ["mobile", "desktop"],
        "urls": ["https://example.com/", "https://example.com/about/"],
        "searchParams": {"nocache": "1"},
        "groups": {
            "staging": {"urls": ["https://staging.example.com/"]}
        }
    }

Legacy configs may keep URL groups directly under ``urls``
(``{"urls": {"production": [...], "staging": [...]}}``).
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlsplit

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from siteaudit.core.exceptions import ConfigInvalid, ConfigNotFound
from siteaudit.core.models import Engine


logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 90.0
DEFAULT_LOWER_THRESHOLD = 50.0
DEFAULT_BATCH_SIZE = 400
DEFAULT_RESULTS_DIR = "lighthouse-reports"

REQUIRED_KEYS = ("categories", "strategies", "urls")


class CategoryThresholds(BaseModel):
    """Пороги одной категории по стратегиям."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    threshold: Dict[str, float] = Field(default_factory=dict)
    lower_threshold: Dict[str, float] = Field(default_factory=dict, alias="lowerThreshold")

    @field_validator("threshold", "lower_threshold")
    @classmethod
    def _check_range(cls, value: Dict[str, float]) -> Dict[str, float]:
        for strategy, number in value.items():
            if not 0 <= number <= 100:
                raise ValueError(f"threshold for '{strategy}' must be within 0..100, got {number}")
        return value

    @model_validator(mode="after")
    def _check_order(self) -> "CategoryThresholds":
        for strategy, lower in self.lower_threshold.items():
            upper = self.threshold_for(strategy)
            if lower > upper:
                raise ValueError(
                    f"lowerThreshold ({lower}) exceeds threshold ({upper}) for '{strategy}'"
                )
        return self

    def threshold_for(self, strategy: str) -> float:
        return self.threshold.get(strategy, DEFAULT_THRESHOLD)

    def lower_for(self, strategy: str) -> float:
        """Нижний порог; никогда не выше основного порога."""
        lower = self.lower_threshold.get(strategy, DEFAULT_LOWER_THRESHOLD)
        return min(lower, self.threshold_for(strategy))


class AuditConfig(BaseModel):
    """
    Активная конфигурация запуска.

    Создаётся один раз через resolve_config() и дальше передаётся
    явно во все компоненты. Неизменяема.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    categories: Dict[str, CategoryThresholds]
    strategies: List[str]
    urls: List[str]
    engine: Engine = Engine.REMOTE_API
    search_params: Dict[str, Any] = Field(default_factory=dict, alias="searchParams")
    batch_size: int = Field(DEFAULT_BATCH_SIZE, alias="batchSize", gt=0)
    results_dir: str = Field(DEFAULT_RESULTS_DIR, alias="resultsDir")
    api_key: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("apiKey", "googleAPIKey", "api_key"),
    )
    group: Optional[str] = None

    @field_validator("categories")
    @classmethod
    def _check_categories(cls, value: Dict[str, CategoryThresholds]) -> Dict[str, CategoryThresholds]:
        if not value:
            raise ValueError("at least one category is required")
        return value

    @field_validator("strategies")
    @classmethod
    def _check_strategies(cls, value: List[str]) -> List[str]:
        # Упорядоченное множество
        unique = list(dict.fromkeys(s.strip() for s in value if s.strip()))
        if not unique:
            raise ValueError("at least one strategy is required")
        return unique

    @field_validator("urls")
    @classmethod
    def _check_urls(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("at least one URL is required")
        for url in value:
            parts = urlsplit(url)
            if parts.scheme not in ("http", "https") or not parts.netloc:
                raise ValueError(f"not an absolute http(s) URL: {url!r}")
        return value

    @property
    def category_names(self) -> List[str]:
        return list(self.categories)


def load_raw_config(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Прочитать JSON-файл конфигурации как данные (никогда не исполняется).

    Raises:
        ConfigNotFound: файла нет
        ConfigInvalid: невалидный JSON или верхний уровень не объект
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigNotFound(f"Config file not found: {config_path}")

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigInvalid(f"Could not parse {config_path}: {e}") from e
    except OSError as e:
        raise ConfigInvalid(f"Could not read {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigInvalid(f"{config_path}: top level must be a JSON object")

    return data


def merge_group(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Слить группу с конфигурацией верхнего уровня.

    Поверхностное слияние: каждый ключ, присутствующий в группе,
    полностью заменяет значение верхнего уровня (вложенные объекты
    не сливаются). Отсутствующие в группе ключи наследуются.
    Ключ ``groups`` в результат не попадает.
    """
    merged = {key: value for key, value in base.items() if key != "groups"}
    for key, value in override.items():
        if key == "groups":
            continue
        merged[key] = value
    return merged


def _select_legacy_urls(urls: Dict[str, Any], group: Optional[str]) -> Any:
    if group is not None and group in urls:
        return urls[group]

    if not urls:
        return []

    first_name, first_urls = next(iter(urls.items()))
    if group is not None:
        logger.warning(f"URL group '{group}' not found, falling back to '{first_name}'")
    else:
        logger.info(f"No URL group given, using '{first_name}'")
    return first_urls


def select_group(raw: Dict[str, Any], group: Optional[str] = None) -> Dict[str, Any]:
    """Применить выбранную группу к сырой конфигурации."""
    groups = raw.get("groups") or {}
    if not isinstance(groups, dict):
        raise ConfigInvalid("'groups' must be an object of group name -> partial config")

    legacy_urls = isinstance(raw.get("urls"), dict)

    if group is None:
        merged = merge_group(raw, {})
    elif group in groups:
        override = groups[group]
        if not isinstance(override, dict):
            raise ConfigInvalid(f"Group '{group}' must be an object")
        merged = merge_group(raw, override)
    elif legacy_urls:
        merged = merge_group(raw, {})
    else:
        available = ", ".join(groups) or "none"
        raise ConfigInvalid(f"Unknown group '{group}' (available: {available})")

    if isinstance(merged.get("urls"), dict):
        merged["urls"] = _select_legacy_urls(merged["urls"], group)

    merged["group"] = group
    return merged


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "config"
        problems.append(f"{location}: {item['msg']}")
    return "; ".join(problems)


def resolve_config(path: Union[str, Path], group: Optional[str] = None) -> AuditConfig:
    """
    Загрузить, слить и провалидировать конфигурацию.

    Args:
        path: Путь к JSON-файлу
        group: Имя группы (None = конфигурация верхнего уровня)

    Returns:
        Неизменяемая активная конфигурация

    Raises:
        ConfigNotFound, ConfigInvalid
    """
    raw = load_raw_config(path)
    merged = select_group(raw, group)

    missing = [key for key in REQUIRED_KEYS if key not in merged]
    if missing:
        raise ConfigInvalid(f"Missing required keys: {', '.join(missing)}")

    try:
        config = AuditConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigInvalid(_format_validation_error(e)) from e

    logger.info(
        f"Loaded config {path} (group={group or '-'}): "
        f"{len(config.urls)} urls, strategies={config.strategies}, "
        f"categories={config.category_names}, engine={config.engine.value}"
    )
    return config
