from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


ENV_BASE_URL = "JAR_WIZARD_BASE_URL"
ENV_LOCALE = "JAR_WIZARD_LOCALE"
ENV_DOWNLOAD_DIR = "JAR_WIZARD_DOWNLOAD_DIR"
ENV_LOG_LEVEL = "JAR_WIZARD_LOG_LEVEL"
ENV_LOG_JSON = "JAR_WIZARD_LOG_JSON"


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.environ.get(name)
    return v if v not in (None, "") else default


def _require(v: Optional[str], what: str) -> str:
    if not v:
        raise RuntimeError(f"Missing required configuration: {what}")
    return v


def _flag(v: Optional[str]) -> bool:
    return (v or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class WizardConfig:
    base_url: str
    locale: str = "en"
    download_dir: str = "."
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls, *, base_url: Optional[str] = None) -> "WizardConfig":
        """Build from `JAR_WIZARD_*` variables; an explicit `base_url` wins over the env."""
        return cls(
            base_url=_require(base_url or _getenv(ENV_BASE_URL), ENV_BASE_URL),
            locale=_getenv(ENV_LOCALE, "en") or "en",
            download_dir=_getenv(ENV_DOWNLOAD_DIR, ".") or ".",
            log_level=_getenv(ENV_LOG_LEVEL, "INFO") or "INFO",
            log_json=_flag(_getenv(ENV_LOG_JSON)),
        )
