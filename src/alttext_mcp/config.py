from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import Mapping, Optional

from alttext_mcp import __version__
from alttext_mcp.api.client import CONNECT_TIMEOUT, DEFAULT_BASE_URL, REQUEST_TIMEOUT
from alttext_mcp.api.errors import ConfigError

API_KEY_ENV = "ALTTEXT_API_KEY"
BASE_URL_ENV = "ALTTEXT_API_BASE_URL"
LOG_LEVEL_ENV = "ALTTEXT_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def load_env_file() -> None:
    """Load a .env file from the working directory if python-dotenv finds one."""
    try:
        from dotenv import load_dotenv
        load_dotenv()
    except Exception:
        pass


@dataclass(frozen=True)
class Settings:
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    client_version: Optional[str] = __version__
    timeout: float = REQUEST_TIMEOUT
    connect_timeout: float = CONNECT_TIMEOUT
    log_level: str = "WARNING"

    def __repr__(self) -> str:
        return f"Settings(base_url={self.base_url!r}, client_version={self.client_version!r}, log_level={self.log_level!r})"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        api_key = (env.get(API_KEY_ENV) or "").strip()
        if not api_key:
            raise ConfigError(f"{API_KEY_ENV} environment variable is required")
        base_url = (env.get(BASE_URL_ENV) or "").strip() or DEFAULT_BASE_URL
        log_level = (env.get(LOG_LEVEL_ENV) or "WARNING").strip().upper()
        return cls(api_key=api_key, base_url=base_url.rstrip("/"), log_level=log_level)


def configure_logging(level: str = "WARNING") -> None:
    # stdout carries the MCP stdio transport; logs go to stderr only.
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger("alttext_mcp")
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    root.propagate = False
