from __future__ import annotations

import os

import matplotlib as mpl

BACKEND_ENV = "KERRLENS_MPL_BACKEND"


def select_backend() -> str:
    """Pick the matplotlib backend before pyplot is imported.

    ``KERRLENS_MPL_BACKEND`` wins when set. Otherwise prefer a GUI backend and
    fall back to Agg, which always works headless. IDE-injected backends
    (PyCharm scientific mode) tend to break animations, hence the override.
    """
    requested = os.environ.get(BACKEND_ENV, "").strip()
    if requested:
        mpl.use(requested, force=True)
        return requested

    for candidate in ("TkAgg", "QtAgg", "Agg"):
        # noinspection PyBroadException
        try:
            mpl.use(candidate, force=True)
        except Exception:  # pragma: no cover  # noqa: BLE001, S112
            continue
        return candidate
    return mpl.get_backend()  # pragma: no cover
