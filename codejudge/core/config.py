from __future__ import annotations

import os
import tempfile
from functools import lru_cache
from dotenv import load_dotenv, find_dotenv

_env_path = find_dotenv(".env") or ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


class Settings:
    """Central configuration (env driven)."""

    def __init__(self) -> None:
        # Supabase
        raw_url = os.getenv("SUPABASE_URL", "")
        self.supabase_url: str = raw_url.rstrip("/")
        self.supabase_anon_key: str = os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY", "")
        self.supabase_service_role_key: str = (
            os.getenv("SUPABASE_SERVICE_ROLE_KEY")
            or os.getenv("SUPABASE_SERVICE_KEY")
            or ""
        )
        # Grading writes need to bypass row level security when a service key is present
        self.supabase_key: str = self.supabase_service_role_key or self.supabase_anon_key
        # Database (migrations only)
        self.database_url: str = os.getenv("DATABASE_URL", "")
        # Judge0
        self.judge0_api_url: str = os.getenv("JUDGE0_BASE_URL", "")
        self.judge0_api_key: str = os.getenv("JUDGE0_KEY", "")
        self.judge0_host: str = os.getenv("JUDGE0_HOST", "")
        self.judge0_timeout_s: float = _env_float("JUDGE0_TIMEOUT_S", 10.0)
        self.judge0_poll_interval_s: float = _env_float("JUDGE0_POLL_INTERVAL_S", 1.0)
        self.judge0_max_poll_attempts: int = max(1, _env_int("JUDGE0_MAX_POLL_ATTEMPTS", 60))
        self.judge0_max_batch_size: int = max(1, _env_int("JUDGE0_MAX_BATCH_SIZE", 20))
        # Local compile gate
        self.local_compile_enabled: bool = _env_bool("LOCAL_COMPILE_ENABLED", "true")
        self.local_compile_timeout_s: float = _env_float("LOCAL_COMPILE_TIMEOUT_S", 10.0)
        self.compile_scratch_dir: str = os.getenv(
            "COMPILE_SCRATCH_DIR", os.path.join(tempfile.gettempdir(), "codejudge-compile")
        )
        self.compile_scratch_max_age_s: int = _env_int("COMPILE_SCRATCH_MAX_AGE_S", 3600)
        # App meta
        self.app_name: str = "CodeJudge Backend"
        self.debug: bool = _env_bool("DEBUG", "False")
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def judge0_configured(self) -> bool:
        return bool(self.judge0_api_url)

    def get_database_url(self) -> str:
        return self.database_url


@lru_cache()
def get_settings() -> Settings:
    return Settings()
