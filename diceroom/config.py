"""Environment-driven settings."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List


def _split_origins(raw: str) -> List[str]:
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.environ.get("DICEROOM_HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "3000")),
            log_level=os.environ.get("DICEROOM_LOG_LEVEL", "INFO").upper(),
            cors_origins=_split_origins(os.environ.get("DICEROOM_CORS_ORIGINS", "*")),
        )


settings = Settings.from_env()

__all__ = ["Settings", "settings"]
