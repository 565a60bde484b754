from __future__ import annotations
from dataclasses import dataclass

import numpy as np
import torch

from .io import load_video_frames, load_npy_frames, to_grayscale_sequence
from .rpca import RPCAResult, rrpca

@dataclass
class RunConfig:
    k: int | None = 1
    lamb: float | None = None
    gamma: float = 1.25
    rho: float = 1.5
    max_iterations: int = 50
    tol: float = 1e-3
    svd_strategy: str = "auto"  # 'auto' | 'randomized' | 'exact'
    oversampling: int = 10
    power_iterations: int = 1
    seed: int | None = None
    verbose: bool = False

    def generator(self) -> torch.Generator | None:
        if self.seed is None:
            return None
        return torch.Generator().manual_seed(self.seed)

@dataclass
class Separation:
    background: np.ndarray  # (T,H,W)
    foreground: np.ndarray  # (T,H,W)
    result: RPCAResult

def frames_to_matrix(frames: np.ndarray) -> np.ndarray:
    """(T,H,W) -> (H*W, T): every frame becomes one column."""
    T = frames.shape[0]
    return frames.reshape(T, -1).T.astype(np.float64)

def matrix_to_frames(M: np.ndarray, frame_shape: tuple[int, int]) -> np.ndarray:
    return M.T.reshape(-1, *frame_shape)

def separate_background(frames: np.ndarray, cfg: RunConfig) -> Separation:
    """Split a frame stack into a low-rank background and a sparse foreground."""
    gray_seq = to_grayscale_sequence(frames)
    if gray_seq.size == 0:
        raise ValueError("No frames to separate")

    T, H, W = gray_seq.shape
    result = rrpca(
        frames_to_matrix(gray_seq),
        k=cfg.k,
        lamb=cfg.lamb,
        gamma=cfg.gamma,
        rho=cfg.rho,
        max_iterations=cfg.max_iterations,
        tol=cfg.tol,
        svd_strategy=cfg.svd_strategy,
        oversampling=cfg.oversampling,
        power_iterations=cfg.power_iterations,
        verbose=cfg.verbose,
        generator=cfg.generator(),
    )
    if cfg.verbose:
        status = "converged" if result.converged else "stopped"
        print(f"RPCA {status} after {result.iterations} iterations (k = {result.k}, error = {result.errors[-1]:.3e})")

    return Separation(
        background=matrix_to_frames(result.L, (H, W)),
        foreground=matrix_to_frames(result.S, (H, W)),
        result=result,
    )

def _finish(sep: Separation, trace_csv: str | None) -> Separation:
    if trace_csv is not None:
        sep.result.to_frame().to_csv(trace_csv, index=False)
    return sep

def run_video(video_path: str, cfg: RunConfig, trace_csv: str | None = None, max_frames: int | None = None) -> Separation:
    frames = load_video_frames(video_path, max_frames=max_frames)
    if frames.size == 0:
        raise ValueError(f"Could not read any frames from {video_path}")
    return _finish(separate_background(frames, cfg), trace_csv)

def run_npy(npy_path: str, cfg: RunConfig, trace_csv: str | None = None) -> Separation:
    return _finish(separate_background(load_npy_frames(npy_path), cfg), trace_csv)
