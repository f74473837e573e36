from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

from .tracker import DEFAULT_TOP_N


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    env: str
    top_n: int
    port: int
    debug: bool
    log_level: str
    enable_prometheus_metrics: bool
    trust_forwarded_for: bool
    admin_token: str
    cors_origins: list[str]

    @property
    def is_production(self) -> bool:
        return self.env.lower() not in {"development", "dev", "test", "testing"}

    def validate(self) -> None:
        """Raise early on dangerous mis-configurations in non-dev environments."""
        if self.is_production and not self.admin_token:
            raise RuntimeError(
                "ADMIN_TOKEN must be explicitly set in production, otherwise anyone can reset the tracker."
            )


def load_settings() -> Settings:
    return Settings(
        env=os.getenv("ENV", "development"),
        top_n=max(0, _as_int(os.getenv("TOP_N"), DEFAULT_TOP_N)),
        port=_as_int(os.getenv("PORT"), 8000),
        debug=_as_bool(os.getenv("DEBUG"), False),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        enable_prometheus_metrics=_as_bool(os.getenv("ENABLE_PROMETHEUS_METRICS"), True),
        trust_forwarded_for=_as_bool(os.getenv("TRUST_FORWARDED_FOR"), False),
        admin_token=os.getenv("ADMIN_TOKEN", "").strip(),
        cors_origins=[
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
            if origin.strip()
        ],
    )


def load_env_file() -> bool:
    """Load `.env` from the working directory upwards; real environment variables win."""
    return load_dotenv(find_dotenv(usecwd=True))


load_env_file()
settings = load_settings()

settings.validate()
