from __future__ import annotations
import torch

def soft_threshold(X: torch.Tensor, tau: float) -> torch.Tensor:
    """Proximal operator of tau * ||X||_1.

    Entries are shrunk toward zero by tau; anything within [-tau, tau] becomes zero.
    Complex entries keep their phase and lose tau from their modulus.
    """
    if tau == 0:
        return X.clone()
    return torch.sgn(X) * torch.clamp(torch.abs(X) - tau, min=0)

def svd_shrink(U: torch.Tensor, s: torch.Tensor, Vh: torch.Tensor, tau: float, clamp: bool = True) -> torch.Tensor:
    """
    Rebuild U diag(s - tau) Vh from a given (truncated) SVD.

    With clamp (the default) shrunk values stop at zero, which is the proximal
    operator of tau * ||X||_*. Without it every kept value is shifted by tau, so a
    value below tau contributes a negative component.
    """
    s_shift = soft_threshold(s, tau) if clamp else s - tau
    # scale columns of U instead of forming diag(s)
    return (U * s_shift.to(U.dtype)) @ Vh
