from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from relay.core.prompt import SYSTEM_PROMPT


load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return float(raw)


def _split_csv(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseModel):
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here. Build one instance at
    startup and hand it to ``create_app``; tests pass explicit values instead
    of mutating the environment.
    """

    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8080")))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    gemini_api_key: Optional[str] = Field(default_factory=lambda: os.getenv("GEMINI_API_KEY") or None)
    gemini_model: str = Field(
        default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.5-flash-preview-05-20")
    )
    gemini_api_base_url: str = Field(
        default_factory=lambda: os.getenv(
            "GEMINI_API_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        )
    )
    system_prompt: str = Field(default_factory=lambda: os.getenv("GEMINI_SYSTEM_PROMPT", SYSTEM_PROMPT))
    # None leaves the outbound call without an application-level timeout.
    upstream_timeout: Optional[float] = Field(default_factory=lambda: _optional_float("UPSTREAM_TIMEOUT"))

    static_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("STATIC_DIR", str(BASE_DIR / "static")))
    )
    index_document: str = Field(default_factory=lambda: os.getenv("INDEX_DOCUMENT", "gemini_chat.html"))
    cors_allow_origins: List[str] = Field(default_factory=lambda: _split_csv("CORS_ALLOW_ORIGINS", "*"))

    @property
    def generate_content_url(self) -> str:
        base = self.gemini_api_base_url.rstrip("/")
        return f"{base}/models/{self.gemini_model}:generateContent"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
