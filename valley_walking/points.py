"""Coercion and validation helpers for point and direction vectors."""

from typing import Optional

import numpy as np

from valley_walking.exceptions import DimensionMismatchError


def as_point(point, n_dims: Optional[int] = None, name: str = "point") -> np.ndarray:
    """
    Copy ``point`` into a 1-D float64 array and validate it.

    Args:
        point: Array-like coordinates
        n_dims: Expected length (None = any)
        name: Label used in error messages

    Returns:
        Fresh (n,) array
    """
    x = np.array(point, dtype=np.float64)

    if x.ndim != 1 or x.size == 0:
        raise DimensionMismatchError(f"{name} must be a non-empty 1-D vector, got shape {x.shape}")
    if n_dims is not None and x.size != n_dims:
        raise DimensionMismatchError(f"{name} has {x.size} coordinates, expected {n_dims}")
    if not np.all(np.isfinite(x)):
        raise ValueError(f"{name} contains non-finite values: {x}")

    return x


def unit_vector(direction, n_dims: int, name: str = "direction") -> np.ndarray:
    """Normalize ``direction`` after checking it matches an n-dimensional point."""
    d = as_point(direction, n_dims=n_dims, name=name)
    norm = np.linalg.norm(d)
    if norm == 0:
        raise ValueError(f"{name} must be non-zero")
    return d / norm
