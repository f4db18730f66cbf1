"""
Configuration for the Nobel tables pipeline.

Values resolve in order: explicit overrides (CLI), environment variables
(a local ``.env`` is honoured through python-dotenv), then defaults. The
source of every value is kept under ``sources`` for the run snapshot.
"""
import os
from typing import Any, Callable, Dict, Optional

from dotenv import load_dotenv

from nobel_tables.data.nobel_fetch import API_URL, DEFAULT_LIMIT, DEFAULT_DELAY, DEFAULT_TIMEOUT
from nobel_tables.pipeline.schemas import PipelineConfig

DEFAULT_OUTPUT_DIR = "artifacts/nobel"

# field -> (env var, parser, default)
FIELDS: Dict[str, tuple] = {
    "api_url": ("NOBEL_API_URL", str, API_URL),
    "limit": ("NOBEL_PAGE_LIMIT", int, DEFAULT_LIMIT),
    "delay": ("NOBEL_REQUEST_DELAY", float, DEFAULT_DELAY),
    "timeout": ("NOBEL_REQUEST_TIMEOUT", float, DEFAULT_TIMEOUT),
    "output_dir": ("NOBEL_OUTPUT_DIR", str, DEFAULT_OUTPUT_DIR),
    "language": ("NOBEL_LANGUAGE", str, "en"),
    "sep": ("NOBEL_SEPARATOR", str, ","),
    "thresholds_path": ("NOBEL_EVAL_THRESHOLDS_PATH", str, "artifacts/nobel/eval_thresholds.json"),
    "force": ("NOBEL_FORCE_RECOMPUTE", lambda v: v.strip().lower() in ("1", "true", "yes"), False),
    "log_level": ("LOG_LEVEL", lambda v: v.strip().upper(), "INFO"),
}


def _language(value: Optional[str]) -> Optional[str]:
    # "all" keeps every translation
    if value is None or value.strip().lower() in ("", "all", "none"):
        return None
    return value.strip().lower()


def _separator(value: str) -> str:
    return "\t" if value in ("\\t", "tab", "TAB") else value


def _resolve(name: str, env_var: str, parser: Callable[[str], Any], default: Any,
             overrides: Dict[str, Any], sources: Dict[str, str]) -> Any:
    if overrides.get(name) is not None:
        sources[name] = "cli"
        return overrides[name]
    raw = os.environ.get(env_var)
    if raw is None:
        sources[name] = "default"
        return default
    try:
        value = parser(raw)
    except ValueError:
        sources[name] = "env_invalid"
        return default
    sources[name] = "env"
    return value


def load_config(overrides: Optional[Dict[str, Any]] = None, dotenv: bool = True) -> PipelineConfig:
    if dotenv:
        load_dotenv()
    overrides = dict(overrides or {})
    sources: Dict[str, str] = {}
    config: Dict[str, Any] = {}
    for name, (env_var, parser, default) in FIELDS.items():
        config[name] = _resolve(name, env_var, parser, default, overrides, sources)

    config["language"] = _language(config["language"])
    config["sep"] = _separator(config["sep"])
    if config["limit"] <= 0:
        config["limit"] = DEFAULT_LIMIT
        sources["limit"] = sources["limit"] + "_invalid"

    for name in ("max_records", "raw_path", "run_id"):
        config[name] = overrides.get(name)
    config["filters"] = {k: v for k, v in (overrides.get("filters") or {}).items() if v is not None}
    config["charts"] = bool(overrides.get("charts", False))
    config["bundle"] = bool(overrides.get("bundle", False))
    config["sources"] = sources
    return config
