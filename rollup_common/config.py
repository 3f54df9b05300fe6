"""
Configuration management for the rollup operation tracker.

Settings are read from the environment (optionally seeded from a .env file)
into pydantic models. Trackers never read this module directly: callers pass
endpoints, contract metadata and polling policy into the collaborators they
construct, and the command-line watcher uses load_settings() to build them.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

_config_logger = logging.getLogger(__name__)


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Python logging level name")
    file: Optional[str] = Field(default=None, description="Optional log file path")


class ObserverSettings(BaseModel):
    rpc_url: str = Field(default="http://localhost:3030", description="L2 JSON-RPC endpoint")
    request_timeout_seconds: float = Field(default=10.0, gt=0, le=600)

    @field_validator("rpc_url")
    @classmethod
    def _validate_rpc_url(cls, value: str) -> str:
        candidate = value.strip()
        if not candidate.startswith(("http://", "https://")):
            raise ValueError("rpc_url must use http or https")
        return candidate.rstrip("/")


class ContractSettings(BaseModel):
    main_contract: Optional[str] = Field(
        default=None, description="Address of the rollup contract on the outer chain"
    )
    priority_event_topic: Optional[str] = Field(
        default=None, description="First log topic of the NewPriorityRequest event"
    )


class PollingSettings(BaseModel):
    poll_interval_seconds: float = Field(default=1.0, gt=0)
    backoff_factor: float = Field(default=2.0, ge=1.0)
    max_interval_seconds: float = Field(default=30.0, gt=0)
    max_transient_retries: int = Field(default=5, ge=0, le=100)
    timeout_seconds: Optional[float] = Field(
        default=3600.0,
        gt=0,
        description="Deadline for a single await call; None waits indefinitely",
    )


class Settings(BaseModel):
    observer: ObserverSettings = Field(default_factory=ObserverSettings)
    contract: ContractSettings = Field(default_factory=ContractSettings)
    polling: PollingSettings = Field(default_factory=PollingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


ENV_KEYS = {
    "rpc_url": "ROLLUP_RPC_URL",
    "rpc_timeout": "ROLLUP_RPC_TIMEOUT",
    "main_contract": "ROLLUP_MAIN_CONTRACT",
    "priority_event_topic": "ROLLUP_PRIORITY_EVENT_TOPIC",
    "poll_interval": "ROLLUP_POLL_INTERVAL",
    "poll_backoff": "ROLLUP_POLL_BACKOFF",
    "poll_max_interval": "ROLLUP_POLL_MAX_INTERVAL",
    "poll_max_retries": "ROLLUP_POLL_MAX_RETRIES",
    "poll_timeout": "ROLLUP_POLL_TIMEOUT",
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
}

# Values of ROLLUP_POLL_TIMEOUT that disable the await deadline
_NO_TIMEOUT_VALUES = frozenset({"none", "0", "off"})


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        _config_logger.warning(
            "Invalid integer value for %s: %r, using default %d", key, value, default
        )
        return default


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        _config_logger.warning(
            "Invalid float value for %s: %r, using default %s", key, value, default
        )
        return default


def _env_timeout(key: str, default: float) -> Optional[float]:
    value = os.getenv(key)
    if value is not None and value.strip().lower() in _NO_TIMEOUT_VALUES:
        return None
    return _env_float(key, default)


def load_settings() -> Settings:
    """Load configuration and cache the result."""
    return _load_settings_cached()


def _settings_from_env() -> Dict[str, Dict[str, object]]:
    observer = ObserverSettings()
    polling = PollingSettings()

    return {
        "observer": {
            "rpc_url": os.getenv(ENV_KEYS["rpc_url"], observer.rpc_url),
            "request_timeout_seconds": _env_float(
                ENV_KEYS["rpc_timeout"], observer.request_timeout_seconds
            ),
        },
        "contract": {
            "main_contract": os.getenv(ENV_KEYS["main_contract"]),
            "priority_event_topic": os.getenv(ENV_KEYS["priority_event_topic"]),
        },
        "polling": {
            "poll_interval_seconds": _env_float(
                ENV_KEYS["poll_interval"], polling.poll_interval_seconds
            ),
            "backoff_factor": _env_float(ENV_KEYS["poll_backoff"], polling.backoff_factor),
            "max_interval_seconds": _env_float(
                ENV_KEYS["poll_max_interval"], polling.max_interval_seconds
            ),
            "max_transient_retries": _env_int(
                ENV_KEYS["poll_max_retries"], polling.max_transient_retries
            ),
            "timeout_seconds": _env_timeout(ENV_KEYS["poll_timeout"], 3600.0),
        },
        "logging": {
            "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
            "file": os.getenv(ENV_KEYS["log_file"]),
        },
    }


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    load_dotenv(dotenv_path=Path.cwd() / ".env")
    return Settings.model_validate(_settings_from_env())


def reset_settings_cache() -> None:
    """Forget cached settings so the next load re-reads the environment."""
    _load_settings_cached.cache_clear()
