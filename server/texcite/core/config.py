from __future__ import annotations

import os
from dataclasses import dataclass


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value if value else default


def _env_int(name: str, default: int, *, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        value = default
    else:
        try:
            value = int(raw)
        except Exception as e:
            raise ValueError(f"Invalid integer value for {name}: {raw!r}") from e
    if min_value is not None and value < min_value:
        raise ValueError(f"{name} must be >= {min_value} (got {value})")
    if max_value is not None and value > max_value:
        raise ValueError(f"{name} must be <= {max_value} (got {value})")
    return value


def _env_float(name: str, default: float, *, min_value: float | None = None, max_value: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        value = float(default)
    else:
        try:
            value = float(raw)
        except Exception as e:
            raise ValueError(f"Invalid float value for {name}: {raw!r}") from e
    if min_value is not None and value < min_value:
        raise ValueError(f"{name} must be >= {min_value} (got {value})")
    if max_value is not None and value > max_value:
        raise ValueError(f"{name} must be <= {max_value} (got {value})")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "y", "on"}:
        return True
    if value in {"0", "false", "no", "n", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {raw!r}")


@dataclass(frozen=True)
class Settings:
    db_url: str
    log_level: str

    github_api_url: str
    github_token: str
    github_user_agent: str
    github_max_concurrency: int
    api_timeout_seconds: float

    fetch_max_workers: int
    structure_mismatch_tolerance: int

    create_tables_on_startup: bool

    @classmethod
    def from_env(cls) -> "Settings":
        db_url = _env_str("TEXCITE_DB_URL", "sqlite:///./data/texcite.db")
        log_level = _env_str("TEXCITE_LOG_LEVEL", "INFO")

        github_api_url = _env_str("TEXCITE_GITHUB_API_URL", "https://api.github.com").rstrip("/")
        if not github_api_url.startswith(("http://", "https://")):
            raise ValueError("TEXCITE_GITHUB_API_URL must be an http(s) URL.")
        github_token = _env_str("TEXCITE_GITHUB_TOKEN", _env_str("GITHUB_TOKEN", ""))
        github_user_agent = _env_str("TEXCITE_GITHUB_USER_AGENT", "texcite/0.1")
        github_max_concurrency = _env_int("TEXCITE_GITHUB_MAX_CONCURRENCY", 4, min_value=0, max_value=64)
        api_timeout_seconds = _env_float("TEXCITE_API_TIMEOUT_SECONDS", 20.0, min_value=2.0, max_value=120.0)

        fetch_max_workers = _env_int("TEXCITE_FETCH_MAX_WORKERS", 1, min_value=1, max_value=32)
        structure_mismatch_tolerance = _env_int(
            "TEXCITE_STRUCTURE_MISMATCH_TOLERANCE", 5, min_value=0, max_value=100_000
        )

        create_tables_on_startup = _env_bool("TEXCITE_CREATE_TABLES_ON_STARTUP", True)

        return cls(
            db_url=db_url,
            log_level=log_level,
            github_api_url=github_api_url,
            github_token=github_token,
            github_user_agent=github_user_agent,
            github_max_concurrency=github_max_concurrency,
            api_timeout_seconds=api_timeout_seconds,
            fetch_max_workers=fetch_max_workers,
            structure_mismatch_tolerance=structure_mismatch_tolerance,
            create_tables_on_startup=create_tables_on_startup,
        )
