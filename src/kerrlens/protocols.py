from __future__ import annotations

from typing import Any, Protocol


class BackgroundImage(Protocol):
    """Externally bound background image contract."""

    def sample(self, uv: Any) -> Any:
        """Return (..., 3) linear RGB for equirectangular uv (..., 2) in [0, 1]."""
        ...


class Drawable2D(Protocol):
    """2D debug drawable contract."""

    def polyline(self, num: int = 600) -> Any:
        """Return a (N,2) polyline suitable for plotting."""
        ...
