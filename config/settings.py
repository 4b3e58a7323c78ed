from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv


def _load_env() -> None:
    # Centralized dotenv loading; safe if .env missing
    load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # Provider credentials
    apollo_api_key: str | None
    fullenrich_api_key: str | None
    rapidapi_key: str | None

    # Provider endpoints
    apollo_search_url: str
    fullenrich_base_url: str
    rapidapi_profile_host: str

    # Async enrichment polling budget
    enrich_poll_attempts: int
    enrich_poll_interval_seconds: float
    enrich_concurrency: int

    # Automation session
    linkedin_login_url: str
    login_wait_seconds: float
    login_poll_slice_seconds: float
    session_ttl_days: int
    default_session_key: str
    browser_headless: bool

    # Core/runtime
    http_timeout_seconds: int
    db_path: str
    run_env: str
    log_level: str

    # Tracing
    provider_trace: bool = False
    provider_log_path: str = "logs/provider_calls.jsonl"

    logged_in_url_markers: tuple[str, ...] = field(
        default=("/feed", "/mynetwork", "/messaging", "/jobs")
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_env()
    return Settings(
        apollo_api_key=os.getenv("APOLLO_API_KEY"),
        fullenrich_api_key=os.getenv("FULLENRICH_API_KEY"),
        rapidapi_key=os.getenv("RAPIDAPI_KEY"),
        apollo_search_url=os.getenv("APOLLO_SEARCH_URL", "https://api.apollo.io/api/v1/mixed_people/search"),
        fullenrich_base_url=os.getenv("FULLENRICH_BASE_URL", "https://app.fullenrich.com/api/v1"),
        rapidapi_profile_host=os.getenv("RAPIDAPI_PROFILE_HOST", "fresh-linkedin-profile-data.p.rapidapi.com"),
        enrich_poll_attempts=int(os.getenv("ENRICH_POLL_ATTEMPTS", "20")),
        enrich_poll_interval_seconds=float(os.getenv("ENRICH_POLL_INTERVAL_SECONDS", "3")),
        enrich_concurrency=int(os.getenv("ENRICH_CONCURRENCY", "2")),
        linkedin_login_url=os.getenv("LINKEDIN_LOGIN_URL", "https://www.linkedin.com/login"),
        login_wait_seconds=float(os.getenv("LOGIN_WAIT_SECONDS", "300")),
        login_poll_slice_seconds=float(os.getenv("LOGIN_POLL_SLICE_SECONDS", "1")),
        session_ttl_days=int(os.getenv("SESSION_TTL_DAYS", "30")),
        default_session_key=os.getenv("DEFAULT_SESSION_KEY", "default"),
        browser_headless=_as_bool(os.getenv("BROWSER_HEADLESS"), default=False),
        http_timeout_seconds=int(os.getenv("HTTP_TIMEOUT_SECONDS", "30")),
        db_path=os.getenv("DB_PATH", "leads.db"),
        run_env=os.getenv("RUN_ENV", "local"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        provider_trace=_as_bool(os.getenv("PROVIDER_TRACE")),
        provider_log_path=os.getenv("PROVIDER_LOG_PATH", "logs/provider_calls.jsonl"),
    )
