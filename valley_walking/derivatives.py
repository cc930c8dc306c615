"""
Derivative Providers
====================

Gradients and Hessians of an objective are never hand-coded per function.
Every numerical routine asks a provider instead:

1. **Finite differences** (default): central differences on plain numpy
   callables. Works with black-box objectives such as ODE-based losses.
2. **Autograd**: exact derivatives through PyTorch. The objective must be
   written with operations torch understands (indexing, arithmetic, ``**``).

Hessian central difference (four-point formula):

    H_ij ≈ [f(x + ε_i + ε_j) - f(x + ε_i - ε_j)
            - f(x - ε_i + ε_j) + f(x - ε_i - ε_j)] / (4ε²)

Both stencils lose accuracy when |f| is large compared with its variation:
every evaluation is rounded to about ε_mach·|f|. Providers report that floor
through ``gradient_noise`` / ``hessian_noise`` so that convergence tests and
rank cutoffs never ask for more precision than the derivatives carry.
"""

from typing import Callable, Union

import numpy as np


Objective = Callable[[np.ndarray], float]

MACHINE_EPS = float(np.finfo(np.float64).eps)
ROUNDOFF_SAFETY = 10.0


class DerivativeProvider:
    """
    Base class for gradient/Hessian providers.

    Subclasses return float64 numpy arrays: gradient (n,), Hessian (n, n).
    """

    name = "base"

    def gradient(self, f: Objective, x: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def hessian(self, f: Objective, x: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def gradient_noise(self, f: Objective, x: np.ndarray) -> float:
        """Roundoff floor of ||gradient(f, x)||; 0 for exact derivatives."""
        return 0.0

    def hessian_noise(self, f: Objective, x: np.ndarray) -> float:
        """Roundoff floor of the Hessian's spectral norm; 0 for exact derivatives."""
        return 0.0

    def __repr__(self):
        return f"{type(self).__name__}()"


class FiniteDifferenceDerivatives(DerivativeProvider):
    """Central finite differences with fixed absolute steps."""

    name = "finite_difference"

    def __init__(self, gradient_step: float = 1e-6, hessian_step: float = 1e-4):
        """
        Args:
            gradient_step: Step for the first-derivative stencil
            hessian_step: Step for the four-point second-derivative stencil
        """
        if gradient_step <= 0 or hessian_step <= 0:
            raise ValueError("Finite difference steps must be positive")
        self.gradient_step = gradient_step
        self.hessian_step = hessian_step

    def gradient(self, f: Objective, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        h = self.gradient_step
        grad = np.zeros_like(x)

        for i in range(x.size):
            x_plus = x.copy()
            x_plus[i] += h
            x_minus = x.copy()
            x_minus[i] -= h
            grad[i] = (float(f(x_plus)) - float(f(x_minus))) / (2 * h)

        return grad

    def hessian(self, f: Objective, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        eps = self.hessian_step
        n = x.size
        hessian = np.zeros((n, n))

        for i in range(n):
            for j in range(i, n):
                x_pp = x.copy()
                x_pp[i] += eps
                x_pp[j] += eps

                x_pm = x.copy()
                x_pm[i] += eps
                x_pm[j] -= eps

                x_mp = x.copy()
                x_mp[i] -= eps
                x_mp[j] += eps

                x_mm = x.copy()
                x_mm[i] -= eps
                x_mm[j] -= eps

                hessian[i, j] = (
                    float(f(x_pp)) - float(f(x_pm)) - float(f(x_mp)) + float(f(x_mm))
                ) / (4 * eps ** 2)
                hessian[j, i] = hessian[i, j]

        return 0.5 * (hessian + hessian.T)

    def _value_scale(self, f: Objective, x: np.ndarray) -> float:
        value = abs(float(f(np.asarray(x, dtype=np.float64))))
        return value if np.isfinite(value) else 0.0

    def gradient_noise(self, f: Objective, x: np.ndarray) -> float:
        # Each stencil value carries ~eps*|f|; the difference divides it by the step
        n = np.asarray(x).size
        return ROUNDOFF_SAFETY * np.sqrt(n) * MACHINE_EPS * self._value_scale(f, x) / self.gradient_step

    def hessian_noise(self, f: Objective, x: np.ndarray) -> float:
        n = np.asarray(x).size
        return ROUNDOFF_SAFETY * n * MACHINE_EPS * self._value_scale(f, x) / self.hessian_step ** 2

    def __repr__(self):
        return (f"FiniteDifferenceDerivatives(gradient_step={self.gradient_step}, "
                f"hessian_step={self.hessian_step})")


class AutogradDerivatives(DerivativeProvider):
    """Exact derivatives through ``torch.autograd``."""

    name = "autograd"

    def __init__(self, dtype=None):
        import torch

        self._torch = torch
        self.dtype = dtype if dtype is not None else torch.float64

    def _to_tensor(self, x: np.ndarray, requires_grad: bool = False):
        return self._torch.tensor(np.asarray(x, dtype=np.float64),
                                  dtype=self.dtype, requires_grad=requires_grad)

    def gradient(self, f: Objective, x: np.ndarray) -> np.ndarray:
        torch = self._torch
        t = self._to_tensor(x, requires_grad=True)
        value = f(t)

        # Objective independent of x
        if not isinstance(value, torch.Tensor) or not value.requires_grad:
            return np.zeros(t.numel())

        (grad,) = torch.autograd.grad(value, t, allow_unused=True)
        if grad is None:
            return np.zeros(t.numel())
        return grad.detach().cpu().numpy().astype(np.float64)

    def hessian(self, f: Objective, x: np.ndarray) -> np.ndarray:
        torch = self._torch
        t = self._to_tensor(x)

        def scalar_objective(inputs):
            value = f(inputs)
            if not isinstance(value, torch.Tensor):
                value = torch.as_tensor(value, dtype=self.dtype)
            return value

        hessian = torch.autograd.functional.hessian(scalar_objective, t)
        hessian = hessian.detach().cpu().numpy().astype(np.float64)
        return 0.5 * (hessian + hessian.T)

    def __repr__(self):
        return f"AutogradDerivatives(dtype={self.dtype})"


PROVIDERS = {
    FiniteDifferenceDerivatives.name: FiniteDifferenceDerivatives,
    AutogradDerivatives.name: AutogradDerivatives,
}


def resolve_derivatives(provider: Union[None, str, DerivativeProvider] = None) -> DerivativeProvider:
    """
    Turn a provider choice into a provider instance.

    Args:
        provider: None (finite differences), a provider name, or a provider

    Returns:
        DerivativeProvider
    """
    if provider is None:
        return FiniteDifferenceDerivatives()
    if isinstance(provider, DerivativeProvider):
        return provider
    if isinstance(provider, str) and provider in PROVIDERS:
        return PROVIDERS[provider]()

    raise ValueError(
        f"Unknown derivative provider: {provider!r} (expected one of: {', '.join(PROVIDERS)})"
    )
