from __future__ import annotations
from dataclasses import dataclass

import numpy as np
import pandas as pd
import torch

from .shrink import soft_threshold, svd_shrink
from .svd import spectral_norm, svd

SVD_STRATEGIES = ("auto", "randomized", "exact")
_STRATEGY_ALIASES = {"rsvd": "randomized", "svd": "exact"}
_SUPPORTED_DTYPES = (torch.float32, torch.float64, torch.complex64, torch.complex128)

class InvalidParameter(ValueError):
    """A solver argument is out of range; raised before any computation starts."""

@dataclass(frozen=True)
class RPCAResult:
    L: np.ndarray
    S: np.ndarray
    k: int  # target rank used in the final iteration
    lamb: float
    gamma: float
    rho: float
    tol: float
    errors: tuple[float, ...]
    iterations: int
    ranks: tuple[int, ...]
    mus: tuple[float, ...]
    mu_bar: float

    @property
    def converged(self) -> bool:
        return len(self.errors) > 0 and self.errors[-1] <= self.tol

    def to_frame(self) -> pd.DataFrame:
        """Per-iteration diagnostics, one row per completed iteration."""
        return pd.DataFrame({
            "iteration": np.arange(1, self.iterations + 1),
            "k": list(self.ranks),
            "mu": list(self.mus),
            "error": list(self.errors),
        })

def _as_array(A) -> np.ndarray:
    arr = A.to_numpy() if isinstance(A, pd.DataFrame) else np.asarray(A)
    if arr.dtype == object:
        # None / pd.NA / nullable-integer columns: missing values become NaN
        arr = np.where(pd.isna(arr), np.nan, arr)
        is_complex = any(isinstance(x, complex) for x in arr.flat)
        arr = arr.astype(np.complex128 if is_complex else np.float64)
    return arr

def _as_tensor(A) -> torch.Tensor:
    if isinstance(A, torch.Tensor):
        t = A.detach().cpu()
    else:
        t = torch.as_tensor(_as_array(A))
    if t.dtype not in _SUPPORTED_DTYPES:
        t = t.to(torch.complex128 if t.is_complex() else torch.float64)
    return t

def choose_svd_strategy(k: int, n: int) -> str:
    """Randomized SVD pays off only while the target rank is small relative to n."""
    return "randomized" if k < n / 1.5 else "exact"

def predict_rank(s: torch.Tensor, k: int, mu_inv: float, n: int, available: int) -> int:
    """
    Next target rank from the singular values of the current residual.

    Counts the values that survive shrinkage by mu_inv. When that count does not
    exceed the current rank, grow by one; otherwise jump by round(0.05 * n) so an
    underestimated rank catches up quickly. Never more than `available`.
    """
    k_opt = int((s > mu_inv).sum().item())
    if k_opt <= k:
        k_next = min(k_opt + 1, available)
    else:
        k_next = min(k_opt + round(0.05 * n), available)
    return max(k_next, 1)

def rrpca(
    A,
    k: int | None = None,
    lamb: float | None = None,
    gamma: float = 1.25,
    rho: float = 1.5,
    max_iterations: int = 50,
    tol: float = 1e-3,
    svd_strategy: str = "auto",
    oversampling: int = 10,
    power_iterations: int = 1,
    verbose: bool = False,
    generator: torch.Generator | None = None,
) -> RPCAResult:
    """
    Randomized robust PCA via the inexact augmented Lagrange multiplier method.

    Splits A (m x n) into a low-rank part L and a sparse part S with A ~ L + S by
    solving min ||L||_* + lamb * ||S||_1 s.t. L + S = A. The low-rank update uses a
    truncated SVD whose target rank is re-estimated every iteration, so a randomized
    SVD can be used while that rank stays small.

    Args:
        A: (m, n) real or complex matrix; NumPy array, DataFrame, tensor or nested list.
            NaN entries are replaced by zero before solving.
        k: initial target rank (default 2), clamped to n.
        lamb: sparsity weight, default max(m, n) ** -0.5.
        gamma, rho: initial penalty scale and its per-iteration growth factor.
        max_iterations, tol: stop after this many iterations or once
            ||A - L - S||_F / ||A||_F <= tol.
        svd_strategy: 'auto', 'randomized' or 'exact' ('rsvd' and 'svd' are aliases).
            'auto' picks randomized while k < n / 1.5, re-checked every iteration.
        oversampling, power_iterations: randomized SVD accuracy controls.
        verbose: print the rank and error of every iteration.
        generator: torch.Generator driving the random sketches (seed it for
            reproducible results).

    Returns:
        RPCAResult. Running out of iterations is not an error; check
        `result.converged` or `result.errors[-1]`.
    """
    A = _as_tensor(A)
    if A.ndim != 2 or A.numel() == 0:
        raise InvalidParameter(f"A must be a non-empty 2-D matrix, got shape {tuple(A.shape)}")
    m, n = A.shape

    strategy = _STRATEGY_ALIASES.get(svd_strategy, svd_strategy)
    if strategy not in SVD_STRATEGIES:
        raise InvalidParameter(f"Selected SVD algorithm is not supported: {svd_strategy!r}, expected one of {SVD_STRATEGIES}")

    if k is None:
        k = 2
    if k < 1:
        raise InvalidParameter(f"Target rank is not valid: k must be >= 1, got {k}")
    k = min(int(k), n)

    if lamb is None:
        lamb = max(m, n) ** -0.5
    for name, value in (("lamb", lamb), ("gamma", gamma), ("rho", rho), ("tol", tol)):
        if not value > 0:
            raise InvalidParameter(f"{name} must be positive, got {value}")
    if max_iterations < 1:
        raise InvalidParameter(f"max_iterations must be >= 1, got {max_iterations}")
    if oversampling < 0 or power_iterations < 0:
        raise InvalidParameter(
            f"oversampling and power_iterations must be non-negative, got {oversampling} and {power_iterations}"
        )

    # missing entries are zero-filled; the mask is not used by the iterations
    A = torch.where(torch.isnan(A), torch.zeros_like(A), A)

    fro_norm = torch.linalg.matrix_norm(A, ord="fro").item()
    if fro_norm == 0:
        if verbose:
            print(f"Iteration: 1     k = {k}      Fro. error = 0")
        zeros = torch.zeros_like(A).numpy()
        return RPCAResult(
            L=zeros, S=zeros.copy(), k=k, lamb=lamb, gamma=gamma, rho=rho, tol=tol,
            errors=(0.0,), iterations=1, ranks=(k,), mus=(float("nan"),), mu_bar=float("nan"),
        )

    spectral = spectral_norm(A, "exact" if strategy == "exact" else "randomized", generator=generator)
    inf_norm = torch.linalg.matrix_norm(A, ord=float("inf")).item() / lamb
    dual_norm = max(spectral, inf_norm)

    Y = A / dual_norm
    mu = gamma / spectral
    mu_bar = mu * 1e7
    mu = min(mu * rho, mu_bar)
    mu_inv = 1.0 / mu

    L = torch.zeros_like(A)
    S = torch.zeros_like(A)
    errors: list[float] = []
    ranks: list[int] = []
    mus: list[float] = []

    for it in range(1, max_iterations + 1):
        S = soft_threshold(A - L + mu_inv * Y, lamb * mu_inv)

        current = choose_svd_strategy(k, n) if strategy == "auto" else strategy
        U, s, Vh = svd(A - S + mu_inv * Y, k, current, oversampling, power_iterations, generator)

        k = predict_rank(s, k, mu_inv, n, available=U.shape[1])
        # kept values are shifted, not clamped: the k_opt + 1 th one may go negative
        L = svd_shrink(U[:, :k], s[:k], Vh[:k, :], mu_inv, clamp=False)

        Z = A - L - S
        Y = Y + mu * Z
        err = torch.linalg.matrix_norm(Z, ord="fro").item() / fro_norm

        errors.append(err)
        ranks.append(k)
        mus.append(mu)
        if verbose:
            print(f"Iteration: {it}     k = {k}      Fro. error = {err:.6e}")

        mu = min(mu * rho, mu_bar)
        mu_inv = 1.0 / mu
        if err <= tol:
            break

    return RPCAResult(
        L=L.numpy(), S=S.numpy(), k=k, lamb=lamb, gamma=gamma, rho=rho, tol=tol,
        errors=tuple(errors), iterations=len(errors), ranks=tuple(ranks), mus=tuple(mus), mu_bar=mu_bar,
    )
