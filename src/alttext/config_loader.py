# src/alttext/config_loader.py

from __future__ import annotations
from pathlib import Path
from typing import Any, Dict
import yaml

PROVIDERS = ("gemini", "echo")


class ConfigError(ValueError):
    pass


def _require(d: Dict[str, Any], dotted: str, typ: type) -> Any:
    cur: Any = d
    for k in dotted.split("."):
        if not isinstance(cur, dict) or k not in cur:
            raise ConfigError(f"Missing config key: {dotted}")
        cur = cur[k]
    if typ is str and not isinstance(cur, str):
        raise ConfigError(f"'{dotted}' must be a string")
    if typ is int and (isinstance(cur, bool) or not isinstance(cur, int)):
        raise ConfigError(f"'{dotted}' must be an integer")
    if typ is float and (isinstance(cur, bool) or not isinstance(cur, (int, float))):
        raise ConfigError(f"'{dotted}' must be a number")
    return cur


def normalise_provider(provider: str) -> str:
    provider = str(provider).lower()
    if provider not in PROVIDERS:
        raise ConfigError(f"Unknown endpoint.provider '{provider}' (expected 'gemini' or 'echo').")
    return provider


def load_config(path: Path) -> Dict[str, Any]:
    if not path or not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict) or not raw:
        raise ConfigError(f"Config is empty or invalid YAML: {path}")

    # Required keys (no defaults here)
    _require(raw, "endpoint.provider", str)
    _require(raw, "endpoint.model", str)
    _require(raw, "endpoint.base_url", str)
    max_attempts = _require(raw, "retry.max_attempts", int)
    base_delay = _require(raw, "retry.base_delay", float)

    if max_attempts < 0:
        raise ConfigError("'retry.max_attempts' must be >= 0")
    if base_delay <= 0:
        raise ConfigError("'retry.base_delay' must be > 0")

    retry = raw["retry"]
    if retry.get("max_delay") is not None:
        max_delay = _require(raw, "retry.max_delay", float)
        if max_delay < base_delay:
            raise ConfigError("'retry.max_delay' must be >= 'retry.base_delay'")

    raw["endpoint"]["provider"] = normalise_provider(raw["endpoint"]["provider"])
    return raw
