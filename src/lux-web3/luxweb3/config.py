import logging
import os
from dataclasses import dataclass

DEFAULT_RPC_URL = "http://127.0.0.1:9888"
DEFAULT_GAS_LIMIT = 250000
DEFAULT_GAS_PRICE = 0.0000004

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass
class Config:
    rpc_url: str = DEFAULT_RPC_URL
    request_timeout: int = 10
    max_retries: int = 3
    backoff_seconds: float = 0.5
    log_level: str = "WARNING"


def _env_number(name: str, default: str, cast):
    raw = os.getenv(name, default).strip()
    try:
        return cast(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got '{raw}'.") from exc


def load_config() -> Config:
    """Load configuration from environment variables."""
    rpc_url = os.getenv("LUX_RPC_URL", DEFAULT_RPC_URL).strip().rstrip("/")
    if not rpc_url:
        raise ValueError("LUX_RPC_URL must not be empty.")

    timeout = _env_number("REQUEST_TIMEOUT", "10", int)
    max_retries = _env_number("REQUEST_RETRIES", "3", int)
    backoff = _env_number("REQUEST_BACKOFF_SECONDS", "0.5", float)

    log_level = os.getenv("LOG_LEVEL", "WARNING").strip().upper()
    if log_level not in _LOG_LEVELS:
        allowed = ", ".join(sorted(_LOG_LEVELS))
        raise ValueError(f"Unknown LOG_LEVEL '{log_level}'. Supported: {allowed}.")

    return Config(
        rpc_url=rpc_url,
        request_timeout=timeout,
        max_retries=max_retries,
        backoff_seconds=backoff,
        log_level=log_level,
    )


def configure_logging(config: Config) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
