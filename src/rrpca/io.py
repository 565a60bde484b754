from __future__ import annotations
import cv2
import numpy as np

def load_video_frames(video_path: str, max_frames: int | None = None) -> np.ndarray:
    """Read frames with OpenCV; (T,H,W,C) BGR, or an empty array if nothing could be read."""
    cap = cv2.VideoCapture(video_path)
    frames = []
    while max_frames is None or len(frames) < max_frames:
        ret, frame = cap.read()
        if not ret:
            break
        frames.append(frame)
    cap.release()
    return np.stack(frames, axis=0) if frames else np.empty((0,))

def load_npy_frames(npy_path: str, time_axis: int | None = None) -> np.ndarray:
    """
    Load a frame stack saved with np.save and move time to the first axis.

    Accepts (T,H,W) / (T,H,W,C) or the time-last layouts (H,W,T) / (H,W,C,T).
    Without an explicit `time_axis`, a short leading axis next to a long trailing
    one is read as time-last.
    """
    arr = np.load(npy_path, allow_pickle=False)
    if arr.ndim not in (3, 4):
        raise ValueError(f"Unsupported npy array shape: {arr.shape} for {npy_path}")
    if time_axis is None:
        time_axis = arr.ndim - 1 if (arr.shape[0] < 8 and arr.shape[-1] >= 8) else 0
    return np.moveaxis(arr, time_axis, 0)

def to_grayscale_sequence(frames: np.ndarray) -> np.ndarray:
    if frames.size == 0:
        return np.empty((0,))
    if frames.ndim == 3:
        # already grayscale (T,H,W)
        return frames
    if frames.ndim == 4 and frames.shape[-1] in (1, 3, 4):
        if frames.shape[-1] == 1:
            return frames[..., 0]
        code = cv2.COLOR_BGRA2GRAY if frames.shape[-1] == 4 else cv2.COLOR_BGR2GRAY
        return np.stack([cv2.cvtColor(f, code) for f in frames])
    raise ValueError(f"Unsupported frames shape for grayscale conversion: {frames.shape}")
