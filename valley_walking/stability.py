"""
Hessian Spectrum Analysis
=========================

Every decision made from second derivatives goes through one eigendecomposition
of the symmetrized Hessian:

- the refiner takes its pseudo-inverse Newton step from it and classifies the
  final point (min / max / saddle / degenerate),
- the valley detector reads the soft modes (|λ| < threshold) as the tangent
  space of the valley,
- the tangent tracker follows the softest mode.

A Hessian with non-finite entries is never decomposed; its analysis carries
nan eigenvalues and type ``unknown``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

import numpy as np


class CriticalPointType(Enum):
    """Classification of critical point types based on Hessian eigenvalues."""
    MIN = "min"                # All eigenvalues positive
    MAX = "max"                # All eigenvalues negative
    SADDLE = "saddle"          # Mixed signs
    DEGENERATE = "degenerate"  # Has (near-)zero eigenvalues
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Union["CriticalPointType", str]) -> "CriticalPointType":
        """Accept an enum member or its string tag; anything else is UNKNOWN."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lstrip(":").lower())
        except ValueError:
            return cls.UNKNOWN


def classify_eigenvalues(eigenvalues: np.ndarray, tol: float) -> CriticalPointType:
    """
    Classify a critical point from its Hessian eigenvalues.

    Any |λ| ≤ tol makes the point degenerate, regardless of the other signs.
    """
    eigenvalues = np.asarray(eigenvalues, dtype=np.float64)
    if eigenvalues.size == 0 or not np.all(np.isfinite(eigenvalues)):
        return CriticalPointType.UNKNOWN

    n_pos = int(np.sum(eigenvalues > tol))
    n_neg = int(np.sum(eigenvalues < -tol))

    if n_pos + n_neg < eigenvalues.size:
        return CriticalPointType.DEGENERATE
    if n_pos == eigenvalues.size:
        return CriticalPointType.MIN
    if n_neg == eigenvalues.size:
        return CriticalPointType.MAX
    return CriticalPointType.SADDLE


@dataclass
class HessianAnalysis:
    """
    Eigendecomposition of a Hessian plus the counts derived from it.

    Attributes:
        eigenvalues: Ascending eigenvalues (nan when the Hessian was not finite)
        eigenvectors: Matching unit eigenvectors as columns
        zero_threshold: |λ| at or below this counts as zero
        n_positive: Eigenvalues above +zero_threshold
        n_negative: Eigenvalues below -zero_threshold (Morse index)
        n_zero: Eigenvalues within ±zero_threshold
        condition_number: max|λ| / min|λ| over the nonzero eigenvalues
        stability_type: Classification from the eigenvalue signs
    """
    eigenvalues: np.ndarray
    eigenvectors: np.ndarray
    zero_threshold: float
    n_positive: int
    n_negative: int
    n_zero: int
    condition_number: float
    stability_type: CriticalPointType

    @property
    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.eigenvalues)))

    @property
    def is_degenerate(self) -> bool:
        return self.n_zero > 0

    @property
    def morse_index(self) -> int:
        return self.n_negative

    def soft_modes(self, threshold: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        Eigenpairs with |λ| strictly below ``threshold``, softest first.

        Returns:
            (eigenvalues (k,), eigenvectors (n, k)); k = 0 when there are none
            or the Hessian was not finite.
        """
        if not self.is_finite:
            n = self.eigenvalues.size
            return np.empty(0), np.empty((n, 0))

        abs_eigs = np.abs(self.eigenvalues)
        idx = np.flatnonzero(abs_eigs < threshold)
        idx = idx[np.argsort(abs_eigs[idx], kind="stable")]
        return self.eigenvalues[idx], self.eigenvectors[:, idx]

    def pseudo_inverse_apply(self, vector: np.ndarray, cutoff: float) -> np.ndarray:
        """H⁺ v, dropping modes with |λ| ≤ cutoff."""
        keep = np.abs(self.eigenvalues) > cutoff
        V = self.eigenvectors[:, keep]
        return V @ ((V.T @ vector) / self.eigenvalues[keep])

    def __str__(self):
        sign_str = f"(−{self.n_negative}, 0×{self.n_zero}, +{self.n_positive})"
        return (f"HessianAnalysis: {self.stability_type.value}, "
                f"eigenvalue signs: {sign_str}, "
                f"κ = {self.condition_number:.2e}")


def analyze_hessian(
    hessian: np.ndarray,
    zero_threshold: float = 1e-6
) -> HessianAnalysis:
    """
    Decompose a Hessian and classify the point it was taken at.

    Args:
        hessian: (n, n) Hessian; symmetrized before decomposition
        zero_threshold: |λ| at or below this counts as zero

    Returns:
        HessianAnalysis
    """
    hessian = np.asarray(hessian, dtype=np.float64)
    n = hessian.shape[0]

    if not np.all(np.isfinite(hessian)):
        return HessianAnalysis(
            eigenvalues=np.full(n, np.nan),
            eigenvectors=np.full((n, n), np.nan),
            zero_threshold=zero_threshold,
            n_positive=0,
            n_negative=0,
            n_zero=0,
            condition_number=np.nan,
            stability_type=CriticalPointType.UNKNOWN
        )

    eigenvalues, eigenvectors = np.linalg.eigh(0.5 * (hessian + hessian.T))
    abs_eigs = np.abs(eigenvalues)

    nonzero = abs_eigs[abs_eigs > zero_threshold]
    condition_number = float(nonzero.max() / nonzero.min()) if nonzero.size else np.inf

    return HessianAnalysis(
        eigenvalues=eigenvalues,
        eigenvectors=eigenvectors,
        zero_threshold=zero_threshold,
        n_positive=int(np.sum(eigenvalues > zero_threshold)),
        n_negative=int(np.sum(eigenvalues < -zero_threshold)),
        n_zero=int(np.sum(abs_eigs <= zero_threshold)),
        condition_number=condition_number,
        stability_type=classify_eigenvalues(eigenvalues, zero_threshold)
    )


def hessian_analysis_at(f, x: np.ndarray, derivatives, zero_threshold: float = 1e-6) -> HessianAnalysis:
    """Analyze the Hessian of f at x from a derivative provider."""
    return analyze_hessian(derivatives.hessian(f, x), zero_threshold)
