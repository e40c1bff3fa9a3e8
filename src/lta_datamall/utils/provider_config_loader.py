from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/providers.yaml"


def _package_root() -> Path:
    """
    Resolves the package root assuming this file lives at: <pkg>/utils/provider_config_loader.py
    """
    return Path(__file__).resolve().parents[1]


def _deep_get(d: Dict[str, Any], keys: str, default: Any = None) -> Any:
    cur: Any = d
    for k in keys.split("."):
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


def _resolve_env_placeholders(value: Any) -> Any:
    """
    Simple env var substitution:
      "${ENV_VAR}" -> os.environ.get("ENV_VAR")
    Works recursively for dict/list/str.
    """
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            env_name = value[2:-1].strip()
            return os.environ.get(env_name)
        return value
    if isinstance(value, dict):
        return {k: _resolve_env_placeholders(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env_placeholders(v) for v in value]
    return value


@dataclass(frozen=True)
class ProviderConfig:
    raw: Dict[str, Any]

    def get(self, path: str, default: Any = None) -> Any:
        return _deep_get(self.raw, path, default)


def load_config(config_path: str | Path = DEFAULT_CONFIG_PATH) -> ProviderConfig:
    # Only the packaged default lives inside the package; any other relative path is the caller's (cwd).
    if str(config_path) == DEFAULT_CONFIG_PATH:
        cfg_path = _package_root() / DEFAULT_CONFIG_PATH
    else:
        cfg_path = Path(config_path).resolve()

    if not cfg_path.exists():
        raise FileNotFoundError(f"Config not found: {cfg_path}")

    with cfg_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    raw = _resolve_env_placeholders(raw)
    return ProviderConfig(raw=raw)


def build_auth_headers_and_params(
    cfg: ProviderConfig,
    auth_path: str,
    api_key: Optional[str] = None,
) -> tuple[Dict[str, str], Dict[str, str]]:
    """
    Builds (headers, params) based on:
      <auth_path>.mode in {none, header, query}
      <auth_path>.env_var      (consulted only when api_key is not given)
      <auth_path>.header_name
      <auth_path>.query_param

    A missing key is not an error here: DataMall answers such requests with
    its own 401, which is relayed to the caller as a flagged tool result.
    """
    mode = (cfg.get(f"{auth_path}.mode", "none") or "none").lower()
    if api_key is None:
        env_var = cfg.get(f"{auth_path}.env_var")
        api_key = os.environ.get(env_var) if env_var else None

    headers: Dict[str, str] = {}
    params: Dict[str, str] = {}

    if mode == "none":
        return headers, params

    if mode not in {"header", "query"}:
        raise ValueError(f"Unsupported auth mode: {mode}")

    if not api_key:
        logger.warning("Auth mode is '%s' but no API key is set; upstream calls will be rejected", mode)
        return headers, params

    if mode == "header":
        header_name = cfg.get(f"{auth_path}.header_name", "AccountKey")
        headers[str(header_name)] = str(api_key)
        return headers, params

    param = cfg.get(f"{auth_path}.query_param", "api_key")
    params[str(param)] = str(api_key)
    return headers, params
