"""
Valley Walking Configuration

Groups every tunable of the detector, projector and walker into a single
immutable dataclass. Variants are derived with ``dataclasses.replace``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import numpy as np

from valley_walking.exceptions import UnknownWalkMethodError


class WalkMethod(Enum):
    """Stepping strategy used to follow a valley."""
    NEWTON_PROJECTION = "newton_projection"      # Plain Newton correction
    PREDICTOR_CORRECTOR = "predictor_corrector"  # Arclength-constrained correction

    @classmethod
    def parse(cls, value: Union["WalkMethod", str]) -> "WalkMethod":
        """Accept an enum member or its string tag."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            known = ", ".join(m.value for m in cls)
            raise UnknownWalkMethodError(
                f"Unknown walk method: {value!r} (expected one of: {known})"
            ) from None


@dataclass(frozen=True)
class ValleyWalkConfig:
    """Complete configuration for detecting and tracing valleys."""

    # =============================================================================
    # Detection
    # =============================================================================
    gradient_tolerance: float   = 1e-4  # Max ||∇f|| for a critical point
    eigenvalue_threshold: float = 1e-3  # |λ| below this is a valley direction

    # =============================================================================
    # Walking
    # =============================================================================
    initial_step_size: float = 0.05  # Fixed predictor step along the tangent
    max_steps: int           = 200   # Points per walk direction
    method: WalkMethod       = WalkMethod.NEWTON_PROJECTION

    # =============================================================================
    # Projection (corrector)
    # =============================================================================
    max_projection_iter: int = 10
    projection_tol: float    = 1e-10  # Target ||∇f|| inside the projector

    # =============================================================================
    # Input checks
    # =============================================================================
    n_dims: Optional[int] = None  # Expected point dimension, None = any

    def __post_init__(self):
        object.__setattr__(self, "method", WalkMethod.parse(self.method))

        for name in ("gradient_tolerance", "eigenvalue_threshold",
                     "initial_step_size", "projection_tol"):
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be positive and finite, got {value}")

        for name in ("max_steps", "max_projection_iter"):
            value = getattr(self, name)
            if int(value) != value or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value}")

        if self.n_dims is not None and (int(self.n_dims) != self.n_dims or self.n_dims < 1):
            raise ValueError(f"n_dims must be a positive integer, got {self.n_dims}")

        # Projected points must pass the criticality gate of the detector
        if self.projection_tol > self.gradient_tolerance:
            raise ValueError(
                f"projection_tol ({self.projection_tol}) must not exceed "
                f"gradient_tolerance ({self.gradient_tolerance})"
            )
