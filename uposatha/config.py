"""Process-wide settings read from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional


@dataclass(frozen=True)
class Settings:
    ephemeris_file: str = "de421.bsp"
    # Directory skyfield downloads/reads kernels from; None means skyfield's default (cwd).
    data_dir: Optional[str] = None
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            ephemeris_file=env.get("UPOSATHA_EPHEMERIS") or cls.ephemeris_file,
            data_dir=env.get("UPOSATHA_DATA_DIR") or None,
            log_level=(env.get("UPOSATHA_LOG_LEVEL") or cls.log_level).upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
