"""Runtime settings read from ``XODUEL_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List

from .registry import ROOM_CODE_LENGTH


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    room_code_length: int = ROOM_CODE_LENGTH

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.environ.get("XODUEL_HOST", "0.0.0.0"),
            port=int(os.environ.get("XODUEL_PORT", "8000")),
            log_level=os.environ.get("XODUEL_LOG_LEVEL", "INFO").upper(),
            cors_origins=_split_origins(os.environ.get("XODUEL_CORS_ORIGINS", "*")),
            room_code_length=int(
                os.environ.get("XODUEL_ROOM_CODE_LENGTH", str(ROOM_CODE_LENGTH))
            ),
        )
