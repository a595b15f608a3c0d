import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv


DEFAULT_SOURCE_CLI = "docker exec -i postgres psql -U postgres -d postgres -tAc"
DEFAULT_TARGET_CLI = "docker exec -i clickhouse clickhouse-client --query"
DEFAULT_QUERY_TIMEOUT = 30
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    source_cli: str = DEFAULT_SOURCE_CLI
    target_cli: str = DEFAULT_TARGET_CLI
    query_timeout: int = DEFAULT_QUERY_TIMEOUT
    tables: tuple = ()
    log_level: str = DEFAULT_LOG_LEVEL


def split_tables(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [t.strip() for t in raw.split(",") if t.strip()]


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def load_settings() -> Settings:
    """
    Read SYNCWATCH_* settings from the environment (and a .env file).
    """
    load_dotenv()

    return Settings(
        source_cli=os.getenv("SYNCWATCH_SOURCE_CLI") or DEFAULT_SOURCE_CLI,
        target_cli=os.getenv("SYNCWATCH_TARGET_CLI") or DEFAULT_TARGET_CLI,
        query_timeout=_int_env("SYNCWATCH_QUERY_TIMEOUT", DEFAULT_QUERY_TIMEOUT),
        tables=tuple(split_tables(os.getenv("SYNCWATCH_TABLES"))),
        log_level=(os.getenv("SYNCWATCH_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
    )
