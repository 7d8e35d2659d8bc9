from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


def _to_int(value: Optional[str], *, default: int, minimum: int) -> int:
    if value is None or not value.strip():
        return default
    return max(minimum, int(value))


def _to_float(value: Optional[str], *, default: float) -> float:
    if value is None or not value.strip():
        return default
    return float(value)


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str]
    base_url: str
    model: str
    timeout_seconds: float
    temperature: float
    max_output_tokens: int
    min_text_length: int


@lru_cache
def get_settings() -> Settings:
    load_dotenv()
    return Settings(
        api_key=os.getenv("OPENAI_API_KEY") or None,
        base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        timeout_seconds=_to_float(os.getenv("OPENAI_TIMEOUT_SECONDS"), default=30.0),
        temperature=_to_float(os.getenv("SUGGESTION_TEMPERATURE"), default=0.7),
        max_output_tokens=_to_int(
            os.getenv("SUGGESTION_MAX_TOKENS"), default=1200, minimum=1
        ),
        min_text_length=_to_int(
            os.getenv("SUGGESTION_MIN_TEXT_LENGTH"), default=10, minimum=1
        ),
    )
