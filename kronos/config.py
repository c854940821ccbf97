# === FILE: kronos/config.py ===
"""
Модуль для загрузки и валидации конфигурации клиента Kronos.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import json
import os
import errno
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)

API_URL = "https://www.nationstates.net/cgi-bin/api.cgi"

DEFAULT_TAGS: tuple[str, ...] = (
    "invader",
    "imperialist",
    "defender",
    "independent",
    "founderless",
    "password",
)


class KronosConfig(BaseModel):
    """Настройки клиента NationStates API и алгоритмов поиска границ обновления."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    user_agent: str = Field(..., min_length=1, description="Заголовок User-Agent (обязателен для NS API).")
    base_url: HttpUrl = Field(API_URL, validate_default=True, description="Адрес API.")
    request_interval: float = Field(1.0, ge=0, description="Минимальный интервал между запросами (секунд).")
    timeout: float = Field(30.0, gt=0, description="Таймаут на один запрос (секунд).")
    tags: list[str] = Field(default_factory=lambda: list(DEFAULT_TAGS), description="Отслеживаемые теги регионов.")

    decrement: int = Field(900, gt=0, description="Шаг обратного поиска конца минора (секунд).")
    horizon: int = Field(86400, gt=0, description="Предел обратного поиска (секунд).")
    increment: int = Field(900, gt=0, description="Шаг окна поиска смены делегатов (секунд).")
    window_cap: int = Field(14400, gt=0, description="Максимальная ширина окна поиска делегатов (секунд).")
    minor_length: int = Field(3600, ge=0, description="Предполагаемая длительность минора (секунд).")

    @field_validator("user_agent", mode="before")
    def _strip_user_agent(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("tags", mode="before")
    def _normalize_tags(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            return [str(t).strip().lower() for t in v if str(t).strip()]
        return v

    @model_validator(mode="after")
    def _check_window(self) -> KronosConfig:
        if self.increment >= self.window_cap:
            raise ValueError("increment must be smaller than window_cap")
        return self

    @property
    def api_url(self) -> str:
        return str(self.base_url).rstrip("/")


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None], **overrides: Any) -> KronosConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект KronosConfig.
    Непустые значения из overrides (например, --user-agent из CLI) имеют приоритет над файлом.
    При отсутствии файла конфига бросает FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    data.update({k: v for k, v in overrides.items() if v is not None})
    return KronosConfig(**data)


__all__ = ["API_URL", "DEFAULT_TAGS", "KronosConfig", "load_config"]
