from __future__ import annotations

import os
from typing import List, Optional

from dotenv import load_dotenv

# Load .env once on import so every entrypoint sees the same configuration.
load_dotenv()


def _env_str(name: str, default: str = "") -> str:
    """Read a string env var, stripping whitespace."""
    return (os.getenv(name, default) or "").strip()


def _env_int(name: str, default: int = 0) -> int:
    """Read an int env var. Raises ValueError on garbage."""
    v = _env_str(name, "")
    return int(v) if v else int(default)


def _env_float(name: str, default: float = 0.0) -> float:
    """Read a float env var. Raises ValueError on garbage."""
    v = _env_str(name, "")
    return float(v) if v else float(default)


def _env_list(name: str, default: Optional[List[str]] = None) -> List[str]:
    """
    Read a comma-separated env var into a list of non-empty, stripped items.

    Order is preserved; it matters for values such as URL override templates
    where the position is significant.
    """
    raw = _env_str(name, "")
    if not raw:
        return list(default or [])
    return [x.strip() for x in raw.split(",") if x.strip()]
