from __future__ import annotations

import logging
from typing import Any

import numpy as np

try:
    import cupy as cp  # type: ignore
except ImportError:  # pragma: no cover
    cp = None

ArrayModule = Any

logger = logging.getLogger(__name__)


def get_array_module(use_cuda: bool = False) -> ArrayModule:
    """Array module for the render batch: CuPy when requested and installed, else NumPy."""
    if not use_cuda:
        return np
    if cp is None:
        logger.warning("CUDA requested but cupy is not installed, rendering on the CPU")
        return np
    return cp


def is_cupy(xp: ArrayModule) -> bool:
    return cp is not None and xp is cp


def to_numpy(xp: ArrayModule, a: Any) -> np.ndarray:
    """Copy an xp array to host memory (image output, plotting, tests)."""
    if is_cupy(xp):
        return cp.asnumpy(a)  # type: ignore[union-attr]
    return np.asarray(a)
