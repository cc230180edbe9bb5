"""Random source helpers."""

from __future__ import annotations

import numpy as np


def make_rng(source: np.random.Generator | int | None = None) -> np.random.Generator:
    """Resolve ``source`` into a NumPy generator.

    ``None`` draws fresh OS entropy, an ``int`` seeds a new generator and an
    existing generator (or any object exposing ``random``/``integers``) is
    returned untouched so callers can share one stream between objects.
    """

    if source is None:
        return np.random.default_rng()
    if isinstance(source, (int, np.integer)) and not isinstance(source, bool):
        return np.random.default_rng(int(source))
    if hasattr(source, "random") and hasattr(source, "integers"):
        return source  # type: ignore[return-value]
    raise TypeError(f"Unsupported random source: {source!r}")


__all__ = ["make_rng"]
