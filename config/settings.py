"""Centralized configuration and environment loading for the upload tracker."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from tracker.errors import ConfigError

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"

# Load environment variables from .env if present. This keeps compatibility with
# deployment environments that manage env vars externally.
try:
    if ENV_PATH.exists():
        load_dotenv(dotenv_path=ENV_PATH)
    else:
        load_dotenv()
except PermissionError:
    logger.warning(
        "Unable to read %s due to permissions. Using existing environment variables.",
        ENV_PATH,
    )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


def _optional_int_env(name: str) -> Optional[int]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return None


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


# --- API Keys ---
YOUTUBE_API_KEY = (os.getenv("YOUTUBE_API_KEY") or os.getenv("YT_API_KEY") or "").strip()

# --- OpenAI ---
OPENAI_API_KEY = (os.getenv("OPENAI_API_KEY") or "").strip()
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TIMEOUT_SECONDS = _float_env("OPENAI_TIMEOUT_SECONDS", 90.0)
OPENAI_MAX_TOKENS = _int_env("OPENAI_MAX_TOKENS", 1400)

# --- Gemini ---
GEMINI_API_KEY = (os.getenv("GEMINI_API_KEY") or "").strip()
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
GEMINI_MAX_TOKENS = _int_env("GEMINI_MAX_TOKENS", 1600)
GEMINI_TIMEOUT_SECONDS = _float_env("GEMINI_TIMEOUT_SECONDS", 90.0)

# 'openai' | 'gemini' | '' (auto)
LLM_PROVIDER = (os.getenv("LLM_PROVIDER") or "").strip().lower()

# --- Insight sample ---
INSIGHT_MAX_ROWS = _int_env("INSIGHT_MAX_ROWS", 1000)
INSIGHT_TITLE_MAX_CHARS = 140

# --- Ingestion limits ---
VIDEOS_BATCH_CEILING = 50  # videos.list hard limit
YT_FETCH_MAX_NEW = max(1, _int_env("YT_FETCH_MAX_NEW", 2000))
YT_VIDEOS_BATCH = max(1, min(VIDEOS_BATCH_CEILING, _int_env("YT_VIDEOS_BATCH", 50)))
YT_SEARCH_MAX_PAGES = max(1, _int_env("YT_SEARCH_MAX_PAGES", 20))
YT_REQUEST_QUOTA_BUDGET = _optional_int_env("YT_REQUEST_QUOTA_BUDGET")
CHANNEL_META_TTL_HOURS = _float_env("CHANNEL_META_TTL_HOURS", 24.0)

# --- Local store ---
DATA_DIR = Path(os.getenv("DATA_DIR") or (BASE_DIR / "data")).resolve()
STORE_PATH = str(Path(os.getenv("STORE_PATH") or (DATA_DIR / "yt-store.json")).resolve())

# --- HTTP server ---
PORT = _int_env("PORT", 8820)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
_RAW_ORIGINS = os.getenv("CORS_ORIGIN") or os.getenv("CLIENT_ORIGIN") or "http://localhost:5173"
CORS_ORIGINS: List[str] = [origin.strip() for origin in _RAW_ORIGINS.split(",") if origin.strip()]


def check_credentials() -> List[ConfigError]:
    """Return a ConfigError for every missing credential.

    Missing keys are reported, never raised: read-only metrics over the local
    store remain useful without any of them.
    """
    problems: List[ConfigError] = []
    if not YOUTUBE_API_KEY:
        problems.append(ConfigError("YOUTUBE_API_KEY is empty. YouTube API calls will fail."))
    if not OPENAI_API_KEY and not GEMINI_API_KEY:
        problems.append(ConfigError("Neither OPENAI_API_KEY nor GEMINI_API_KEY is set. Insight reports will fail."))
    return problems
