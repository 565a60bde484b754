import pytest
import torch

from rrpca.svd import exact_svd, rsvd, spectral_norm, svd


def _low_rank(m=50, n=30, k=10, complex_=False, seed=1234):
    g = torch.Generator().manual_seed(seed)
    dtype = torch.complex128 if complex_ else torch.float64
    X = torch.rand(m, k, dtype=torch.float64, generator=g).to(dtype)
    if complex_:
        X = X + 1j * torch.rand(m, k, dtype=torch.float64, generator=g)
    return (X @ X.mH)[:, :n]


def _reconstruct(res):
    return (res.U * res.s.to(res.U.dtype)) @ res.Vh


def test_exact_svd_reconstructs():
    A = _low_rank()
    res = exact_svd(A)
    assert res.U.shape == (50, 30)
    assert res.Vh.shape == (30, 30)
    torch.testing.assert_close(_reconstruct(res), A)


@pytest.mark.parametrize("transpose", [False, True])
@pytest.mark.parametrize("complex_", [False, True])
def test_rsvd_recovers_low_rank_matrix(transpose, complex_):
    A = _low_rank(complex_=complex_)
    if transpose:
        A = A.mH
    g = torch.Generator().manual_seed(0)
    res = rsvd(A, 10, oversampling=5, power_iterations=1, generator=g)
    m, n = A.shape
    assert res.U.shape == (m, 10)
    assert res.s.shape == (10,)
    assert res.Vh.shape == (10, n)

    s_exact = torch.linalg.svdvals(A)[:10]
    torch.testing.assert_close(res.s, s_exact, rtol=1e-6, atol=1e-8)
    torch.testing.assert_close(_reconstruct(res), A, rtol=1e-6, atol=1e-6)


def test_rsvd_without_oversampling_or_power_iterations():
    A = _low_rank()
    g = torch.Generator().manual_seed(3)
    res = rsvd(A, 10, oversampling=0, power_iterations=0, generator=g)
    s_exact = torch.linalg.svdvals(A)[:10]
    torch.testing.assert_close(res.s, s_exact, rtol=1e-4, atol=1e-6)
    rel = torch.linalg.matrix_norm(A - _reconstruct(res), ord=2) / torch.linalg.matrix_norm(A, ord=2)
    assert rel < 0.1


def test_rsvd_is_reproducible_with_seeded_generator():
    A = torch.randn(40, 25, dtype=torch.float64, generator=torch.Generator().manual_seed(5))
    a = rsvd(A, 4, generator=torch.Generator().manual_seed(9))
    b = rsvd(A, 4, generator=torch.Generator().manual_seed(9))
    assert torch.equal(a.s, b.s)
    assert torch.equal(a.U, b.U)


def test_rsvd_caps_width_at_smaller_dimension():
    A = torch.randn(20, 6, dtype=torch.float64, generator=torch.Generator().manual_seed(6))
    res = rsvd(A, 10, oversampling=10)
    assert res.U.shape == (20, 6)
    torch.testing.assert_close(res.s, torch.linalg.svdvals(A))


def test_spectral_norm():
    A = _low_rank()
    exact = spectral_norm(A, "exact")
    assert exact == pytest.approx(torch.linalg.matrix_norm(A, ord=2).item())

    approx = spectral_norm(A, "randomized", generator=torch.Generator().manual_seed(0))
    assert 0 < approx <= exact * (1 + 1e-12)

    rank_one = torch.outer(torch.arange(1.0, 9.0, dtype=torch.float64), torch.ones(5, dtype=torch.float64))
    assert spectral_norm(rank_one, "randomized") == pytest.approx(spectral_norm(rank_one, "exact"))


def test_svd_dispatch():
    A = torch.randn(60, 40, dtype=torch.float64, generator=torch.Generator().manual_seed(7))
    assert svd(A, 3, "exact").U.shape == (60, 40)
    assert svd(A, 3, "randomized", oversampling=10).U.shape == (60, 13)
    assert svd(A, 35, "randomized", oversampling=10).U.shape == (60, 40)

    with pytest.raises(ValueError):
        svd(A, 3, "lanczos")
    with pytest.raises(ValueError):
        spectral_norm(A, "auto")
