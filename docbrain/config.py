"""
Runtime configuration read from the environment
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes", "on")


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


@dataclass(frozen=True)
class Settings:
    spacy_model: str = "en_core_web_sm"
    max_upload_mb: int = 100
    min_text_chars: int = 10
    max_text_chars: int = 2_000_000
    mcq_seed: Optional[int] = None
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    extraction_rate_limit: str = "30/minute"
    rate_limit_enabled: bool = True

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @classmethod
    def from_env(cls) -> "Settings":
        origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
        return cls(
            spacy_model=os.getenv("SPACY_MODEL", "en_core_web_sm"),
            max_upload_mb=int(os.getenv("MAX_UPLOAD_MB", "100")),
            min_text_chars=int(os.getenv("MIN_TEXT_CHARS", "10")),
            max_text_chars=int(os.getenv("MAX_TEXT_CHARS", "2000000")),
            mcq_seed=_env_optional_int("MCQ_SEED"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=origins or ["*"],
            extraction_rate_limit=os.getenv("EXTRACTION_RATE_LIMIT", "30/minute"),
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", "true"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
