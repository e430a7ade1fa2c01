"""
Configuration.

Defaults live here as module constants; every one can be overridden by an
environment variable. Settings.from_env() resolves them once at startup and the
resulting object is passed down explicitly.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from openai import AzureOpenAI, OpenAI

from .errors import ConfigError

# Default LinkedIn listing to page through.
DEFAULT_JOBS_URL = "https://www.linkedin.com/jobs/collections/recommended/"

# Chrome must already be running with --remote-debugging-port=9222 and logged in.
DEFAULT_CDP_URL = "http://localhost:9222"

DEFAULT_POSTINGS_DIR = "job-postings"
DEFAULT_OUTPUT_DIR = "job-suitability"
DEFAULT_PROFILE_FILE = "resume.md"

# Human-like pause between job cards (uniform in [min, max]).
DEFAULT_DELAY_MIN_MS = 1500
DEFAULT_DELAY_MAX_MS = 2500

DEFAULT_PANEL_TIMEOUT_MS = 10000   # details pane after clicking a card
DEFAULT_PAGE_TIMEOUT_MS = 30000    # job list after navigation / Next
DEFAULT_MAX_PAGES = 0              # 0 = until Next is missing/disabled

# LLM tuning
DEFAULT_LLM_MODEL = "gpt-4o-mini"
DEFAULT_LLM_TEMPERATURE = 0.0
DEFAULT_LLM_MAX_JD_CHARS = 12000   # limit job description length sent to LLM
DEFAULT_LLM_MAX_RETRIES = 2        # transport-level retries inside the client

DEFAULT_AZURE_API_VERSION = "2024-10-21"

DEFAULT_LOG_RETENTION_DAYS = 3

DEFAULT_TOP_MATCHES_LIMIT = 0      # 0 = rank every classified job


def _env_str(env: Mapping[str, str], key: str, default: str) -> str:
    return (env.get(key) or "").strip() or default


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class AIBackend:
    """Which hosted model service to talk to; picked by which key is present."""
    kind: str  # "openai" | "azure"
    api_key: str
    endpoint: str = ""
    api_version: str = ""

    @property
    def label(self) -> str:
        return "Azure OpenAI" if self.kind == "azure" else "OpenAI API"


def resolve_backend(env: Optional[Mapping[str, str]] = None) -> Optional[AIBackend]:
    """
    OPENAI_API_KEY wins; otherwise Azure OpenAI if both its key and endpoint
    are set. Returns None when neither is configured.
    """
    env = os.environ if env is None else env
    openai_key = (env.get("OPENAI_API_KEY") or "").strip()
    if openai_key:
        return AIBackend(kind="openai", api_key=openai_key)

    azure_key = (env.get("AZURE_OPENAI_API_KEY") or "").strip()
    azure_endpoint = (env.get("AZURE_OPENAI_ENDPOINT") or "").strip()
    if azure_key and azure_endpoint:
        return AIBackend(
            kind="azure",
            api_key=azure_key,
            endpoint=azure_endpoint,
            api_version=_env_str(env, "OPENAI_API_VERSION", DEFAULT_AZURE_API_VERSION),
        )
    return None


def build_client(backend: Optional[AIBackend], max_retries: int = DEFAULT_LLM_MAX_RETRIES):
    """Construct the OpenAI SDK client for the selected backend."""
    if backend is None:
        raise ConfigError(
            "No model credentials: set OPENAI_API_KEY, or AZURE_OPENAI_API_KEY "
            "and AZURE_OPENAI_ENDPOINT."
        )

    if backend.kind == "azure":
        return AzureOpenAI(
            api_key=backend.api_key,
            azure_endpoint=backend.endpoint,
            api_version=backend.api_version,
            max_retries=max_retries,
        )
    return OpenAI(api_key=backend.api_key, max_retries=max_retries)


@dataclass(frozen=True)
class Settings:
    jobs_url: str = DEFAULT_JOBS_URL
    cdp_url: str = DEFAULT_CDP_URL
    postings_dir: Path = Path(DEFAULT_POSTINGS_DIR)
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    profile_file: Path = Path(DEFAULT_PROFILE_FILE)
    delay_min_ms: int = DEFAULT_DELAY_MIN_MS
    delay_max_ms: int = DEFAULT_DELAY_MAX_MS
    panel_timeout_ms: int = DEFAULT_PANEL_TIMEOUT_MS
    page_timeout_ms: int = DEFAULT_PAGE_TIMEOUT_MS
    max_pages: int = DEFAULT_MAX_PAGES
    llm_model: str = DEFAULT_LLM_MODEL
    llm_temperature: float = DEFAULT_LLM_TEMPERATURE
    llm_max_jd_chars: int = DEFAULT_LLM_MAX_JD_CHARS
    llm_max_retries: int = DEFAULT_LLM_MAX_RETRIES
    log_retention_days: int = DEFAULT_LOG_RETENTION_DAYS
    top_matches_limit: int = DEFAULT_TOP_MATCHES_LIMIT
    backend: Optional[AIBackend] = None

    @property
    def results_file(self) -> Path:
        return self.output_dir / "results.json"

    @property
    def log_dir(self) -> Path:
        return self.output_dir / "logs"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env

        delay_min = _env_int(env, "ITEM_DELAY_MIN_MS", DEFAULT_DELAY_MIN_MS)
        delay_max = _env_int(env, "ITEM_DELAY_MAX_MS", DEFAULT_DELAY_MAX_MS)
        top_limit = _env_int(env, "TOP_MATCHES_LIMIT", DEFAULT_TOP_MATCHES_LIMIT)
        if top_limit < 0:
            raise ConfigError(f"TOP_MATCHES_LIMIT must be 0 or more, got {top_limit}")
        if delay_min < 0 or delay_max < delay_min:
            raise ConfigError(
                f"Invalid item delay window: [{delay_min}, {delay_max}] ms")

        return cls(
            jobs_url=_env_str(env, "LINKEDIN_JOBS_URL", DEFAULT_JOBS_URL),
            cdp_url=_env_str(env, "CDP_URL", DEFAULT_CDP_URL),
            postings_dir=Path(_env_str(env, "JOB_POSTINGS_DIR", DEFAULT_POSTINGS_DIR)),
            output_dir=Path(_env_str(env, "OUTPUT_DIR", DEFAULT_OUTPUT_DIR)),
            profile_file=Path(_env_str(env, "PROFILE_FILE", DEFAULT_PROFILE_FILE)),
            delay_min_ms=delay_min,
            delay_max_ms=delay_max,
            panel_timeout_ms=_env_int(env, "PANEL_TIMEOUT_MS", DEFAULT_PANEL_TIMEOUT_MS),
            page_timeout_ms=_env_int(env, "PAGE_TIMEOUT_MS", DEFAULT_PAGE_TIMEOUT_MS),
            max_pages=_env_int(env, "MAX_PAGES", DEFAULT_MAX_PAGES),
            llm_model=_env_str(env, "LLM_MODEL", DEFAULT_LLM_MODEL),
            llm_temperature=_env_float(env, "LLM_TEMPERATURE", DEFAULT_LLM_TEMPERATURE),
            llm_max_jd_chars=_env_int(env, "LLM_MAX_JD_CHARS", DEFAULT_LLM_MAX_JD_CHARS),
            llm_max_retries=_env_int(env, "LLM_MAX_RETRIES", DEFAULT_LLM_MAX_RETRIES),
            log_retention_days=_env_int(env, "LOG_RETENTION_DAYS", DEFAULT_LOG_RETENTION_DAYS),
            top_matches_limit=top_limit,
            backend=resolve_backend(env),
        )


def normalise_url(url: str) -> str:
    """
    Normalise input URL:
    - If empty, return as-is
    - If already has http/https, return
    - Else prefix https://
    """
    url = (url or "").strip()
    if not url:
        return url
    if url.startswith("http://") or url.startswith("https://"):
        return url
    return "https://" + url.lstrip("/")
