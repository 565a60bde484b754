from __future__ import annotations
from dataclasses import dataclass

import numpy as np

@dataclass
class ToyVideo:
    matrix: np.ndarray      # (height*width, n_frames), one frame per column
    background: np.ndarray  # (height, width)
    foreground: np.ndarray  # same shape as matrix
    mask: np.ndarray        # support of foreground
    height: int
    width: int

    def frames(self) -> np.ndarray:
        """The matrix as a (T, H, W) frame stack."""
        return self.matrix.T.reshape(-1, self.height, self.width)

def moving_block(
    height: int = 100,
    width: int = 100,
    n_frames: int = 100,
    n_moving: int | None = None,
    block: int = 11,
    magnitude: float = 0.2,
) -> ToyVideo:
    """
    Static rank-1 background with a square block sliding down one row per frame.

    The block is centred horizontally (clipped to the frame) and is present in the
    first `n_moving` frames, by default all but the last ten.
    """
    y = np.linspace(-50, 50, height)
    x = np.linspace(-50, 50, width)
    xx, yy = np.meshgrid(x, y)
    bg = 0.1 * np.exp(np.sin(-xx ** 2 - yy ** 2))

    if n_moving is None:
        n_moving = max(n_frames - 10, 0)
    n_moving = min(n_moving, n_frames)

    background = np.tile(bg.reshape(-1, 1), (1, n_frames))
    foreground = np.zeros_like(background)
    c0 = max(0, (width - block) // 2)
    c1 = min(width, c0 + block)
    for i in range(n_moving):
        obj = np.zeros((height, width))
        obj[i:i + block, c0:c1] = magnitude
        foreground[:, i] = obj.reshape(-1)

    return ToyVideo(
        matrix=background + foreground,
        background=bg,
        foreground=foreground,
        mask=foreground != 0,
        height=height,
        width=width,
    )
