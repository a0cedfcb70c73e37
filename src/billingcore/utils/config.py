from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml


DEFAULT_CONFIG_NAME = "config.yaml"
DEFAULT_VAT_RATE = 20.0
DEFAULT_CURRENCY_SYMBOL = "£"


@dataclass(frozen=True)
class EngineSettings:
    """Global defaults handed explicitly to every calculation call."""

    default_vat_rate: float = DEFAULT_VAT_RATE
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL


def load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    return data or {}


def save_yaml(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), encoding="utf-8")


def deep_get(d: Dict[str, Any], keys: list[str], default: Any = None) -> Any:
    cur: Any = d
    for k in keys:
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


def deep_set(d: Dict[str, Any], keys: list[str], value: Any) -> None:
    cur = d
    for k in keys[:-1]:
        if k not in cur or not isinstance(cur[k], dict):
            cur[k] = {}
        cur = cur[k]
    cur[keys[-1]] = value


def settings_from_config(cfg: Dict[str, Any]) -> EngineSettings:
    rate = deep_get(cfg, ["billing", "default_vat_rate"], DEFAULT_VAT_RATE)
    symbol = deep_get(cfg, ["billing", "currency_symbol"], DEFAULT_CURRENCY_SYMBOL)
    try:
        rate_f = float(rate)
    except (TypeError, ValueError):
        rate_f = DEFAULT_VAT_RATE
    return EngineSettings(
        default_vat_rate=rate_f,
        currency_symbol=str(symbol) if symbol is not None else DEFAULT_CURRENCY_SYMBOL,
    )


def load_settings(path: Path) -> EngineSettings:
    """Read `billing.*` keys from a YAML config; missing file or keys give defaults."""
    return settings_from_config(load_yaml(path))
