from __future__ import annotations

import os
from typing import List

from dotenv import load_dotenv

# Load .env once on import.
load_dotenv()


def _env_str(name: str, default: str = "") -> str:
    """Read a string env var, stripping whitespace."""
    return (os.getenv(name, default) or "").strip()


def _env_int(name: str, default: int = 0) -> int:
    v = _env_str(name, str(default)) or str(default)
    return int(v)


def _env_float(name: str, default: float = 0.0) -> float:
    v = _env_str(name, str(default)) or str(default)
    return float(v)


def _env_csv(name: str) -> List[str]:
    """Read a comma separated env var into a list of non-empty items."""
    raw = _env_str(name, "")
    if not raw:
        return []
    return [x.strip() for x in raw.split(",") if x.strip()]
