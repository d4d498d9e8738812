# runtime settings read from the environment
# a local .env is honoured for development, real deployments inject the variables directly

from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, TypeVar

from dotenv import load_dotenv

from .errors import ConfigError

T = TypeVar("T", int, float)

DEFAULT_TIMEOUT = 10.0
DEFAULT_WORKERS = 4
DEFAULT_USER_AGENT = "jsonfetch/0.1"
DEFAULT_LOG_LEVEL = "WARNING"


def _positive(env: Mapping[str, str], name: str, cast: Callable[[str], T], default: T) -> T:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number (got {raw!r})") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive (got {raw!r})")
    return value


def _level(env: Mapping[str, str]) -> str:
    name = (env.get("JSONFETCH_LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper()
    # getLevelName maps known names to ints and anything else to "Level <name>"
    if not isinstance(logging.getLevelName(name), int):
        raise ConfigError(f"JSONFETCH_LOG_LEVEL must be a logging level name (got {name!r})")
    return name


@dataclass(frozen=True)
class Settings:
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    max_workers: int = DEFAULT_WORKERS
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        # tests pass a plain dict, everything else reads os.environ after loading .env
        if env is None:
            load_dotenv()
            env = os.environ
        return cls(
            timeout=_positive(env, "JSONFETCH_TIMEOUT", float, DEFAULT_TIMEOUT),
            user_agent=env.get("JSONFETCH_USER_AGENT") or DEFAULT_USER_AGENT,
            max_workers=_positive(env, "JSONFETCH_WORKERS", int, DEFAULT_WORKERS),
            log_level=_level(env),
        )
