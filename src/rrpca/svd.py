from __future__ import annotations
from typing import NamedTuple

import torch

class SVDResult(NamedTuple):
    U: torch.Tensor   # (m, k')
    s: torch.Tensor   # (k',) descending
    Vh: torch.Tensor  # (k', n)

def exact_svd(A: torch.Tensor) -> SVDResult:
    U, s, Vh = torch.linalg.svd(A, full_matrices=False)
    return SVDResult(U, s, Vh)

def rsvd(
    A: torch.Tensor,
    k: int,
    oversampling: int = 10,
    power_iterations: int = 1,
    generator: torch.Generator | None = None,
) -> SVDResult:
    """
    Randomized SVD (Halko, Martinsson & Tropp 2011).

    A Gaussian sketch of width k + oversampling captures the range of A, each
    power iteration re-projects through A^H A (re-orthonormalised with QR to
    keep the small singular directions from being swamped), and the exact SVD
    of the projected matrix Q^H A gives the leading k triples.
    """
    m, n = A.shape
    if m < n:
        # work on the tall side, then swap the factors back
        U, s, Vh = rsvd(A.mH, k, oversampling, power_iterations, generator)
        return SVDResult(Vh.mH, s, U.mH)

    width = max(1, min(k + oversampling, n))
    omega = torch.randn(n, width, dtype=A.dtype, device=A.device, generator=generator)
    Y = A @ omega
    for _ in range(power_iterations):
        Q, _ = torch.linalg.qr(Y)
        Q, _ = torch.linalg.qr(A.mH @ Q)
        Y = A @ Q
    Q, _ = torch.linalg.qr(Y)

    B = Q.mH @ A
    U_small, s, Vh = torch.linalg.svd(B, full_matrices=False)
    U = Q @ U_small

    k_out = min(k, width)
    return SVDResult(U[:, :k_out], s[:k_out], Vh[:k_out, :])

def spectral_norm(A: torch.Tensor, strategy: str, generator: torch.Generator | None = None) -> float:
    """Largest singular value of A; the randomized path is a cheap rank-1 estimate."""
    if strategy == "exact":
        return float(torch.linalg.matrix_norm(A, ord=2).item())
    if strategy == "randomized":
        return float(rsvd(A, 1, oversampling=5, power_iterations=0, generator=generator).s[0].item())
    raise ValueError(f"strategy must be 'randomized' or 'exact', got: {strategy}")

def svd(
    A: torch.Tensor,
    k: int,
    strategy: str = "exact",
    oversampling: int = 10,
    power_iterations: int = 1,
    generator: torch.Generator | None = None,
) -> SVDResult:
    """Return at least k singular triples of A (all of them for the exact strategy)."""
    if strategy == "exact":
        return exact_svd(A)
    if strategy == "randomized":
        # oversampling widens the request itself, the sketch is not widened again
        return rsvd(A, k + oversampling, oversampling=0, power_iterations=power_iterations, generator=generator)
    raise ValueError(f"strategy must be 'randomized' or 'exact', got: {strategy}")
