from __future__ import annotations

from typing import Any


def to_float(v: Any, default: float = 0.0) -> float:
    """Lenient numeric coercion: None, empty or unparseable input gives `default`."""
    if v is None:
        return float(default)
    if isinstance(v, bool):
        return float(v)
    if isinstance(v, (int, float)):
        return float(v)
    try:
        s = str(v).strip().replace("\xa0", "").replace(" ", "").replace(",", ".")
        return float(s) if s else float(default)
    except ValueError:
        return float(default)
