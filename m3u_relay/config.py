"""Environment-backed settings shared by the CLI and the web app."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT_LANGUAGE = "tr-TR,tr;q=0.9,en-US;q=0.8,en;q=0.7"

ENV_PREFIX = "M3U_RELAY_"


def _env_str(name: str) -> str | None:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or value == "":
        return None
    return value


def _env_int(name: str) -> int | None:
    value = _env_str(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logging.warning("Ignoring non-integer value for %s%s: %r", ENV_PREFIX, name, value)
        return None


def _env_float(name: str) -> float | None:
    value = _env_str(name)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        logging.warning("Ignoring non-numeric value for %s%s: %r", ENV_PREFIX, name, value)
        return None


def _env_bool(name: str) -> bool:
    value = _env_str(name)
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Runtime configuration; built once at startup and never mutated."""

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"
    max_upload_bytes: int = 50 * 1024 * 1024
    chunk_size: int = 64 * 1024
    relay_chunk_size: int = 16 * 1024
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE

    @property
    def max_upload_mb(self) -> float:
        return self.max_upload_bytes / (1024 * 1024)


def load_settings(dotenv: bool = True) -> Settings:
    """Builds :class:`Settings` from ``M3U_RELAY_*`` variables (and ``.env``)."""

    if dotenv:
        load_dotenv()

    values: dict = {}
    host = _env_str("HOST")
    if host:
        values["host"] = host
    port = _env_int("PORT")
    if port is not None:
        values["port"] = port
    values["debug"] = _env_bool("DEBUG")
    log_level = _env_str("LOG_LEVEL")
    if log_level:
        values["log_level"] = log_level.upper()
    max_upload_mb = _env_int("MAX_UPLOAD_MB")
    if max_upload_mb is not None:
        values["max_upload_bytes"] = max_upload_mb * 1024 * 1024
    chunk_size = _env_int("CHUNK_SIZE")
    if chunk_size:
        values["chunk_size"] = chunk_size
    relay_chunk_size = _env_int("RELAY_CHUNK_SIZE")
    if relay_chunk_size:
        values["relay_chunk_size"] = relay_chunk_size
    connect_timeout = _env_float("CONNECT_TIMEOUT")
    if connect_timeout is not None:
        values["connect_timeout"] = connect_timeout
    read_timeout = _env_float("READ_TIMEOUT")
    if read_timeout is not None:
        values["read_timeout"] = read_timeout
    user_agent = _env_str("USER_AGENT")
    if user_agent:
        values["user_agent"] = user_agent
    accept_language = _env_str("ACCEPT_LANGUAGE")
    if accept_language:
        values["accept_language"] = accept_language
    return Settings(**values)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
