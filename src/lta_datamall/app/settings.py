from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from lta_datamall.utils.provider_config_loader import DEFAULT_CONFIG_PATH


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(key)
    if v is None or v == "":
        return default
    return v


@dataclass(frozen=True)
class AppSettings:
    """
    Centralized runtime settings for the server.

    Intended behavior:
    - Loads .env (if present) and then reads environment variables.
    - Read once at startup; the result is passed explicitly to whatever needs it.

    Environment variables:
      LTA_API_KEY                    DataMall account key sent as the AccountKey header
      LTA_PROVIDER_CONFIG            path to the provider YAML (default: packaged config/providers.yaml)
      LOG_LEVEL                      DEBUG|INFO|WARNING|ERROR (default INFO)
    """
    lta_api_key: Optional[str]
    provider_config: str
    log_level: str

    @classmethod
    def load(cls, dotenv_path: str | Path = ".env") -> "AppSettings":
        load_dotenv(dotenv_path=str(dotenv_path), override=False)

        return cls(
            lta_api_key=_env("LTA_API_KEY"),
            provider_config=_env("LTA_PROVIDER_CONFIG", DEFAULT_CONFIG_PATH) or DEFAULT_CONFIG_PATH,
            log_level=(_env("LOG_LEVEL", "INFO") or "INFO").upper(),
        )
