"""
Boundary padding and frame slicing for 1-D signals.
"""

import numpy as np

from .errors import InvalidArgumentError, UnsupportedPadModeError

# Boundary policy -> numpy.pad mode
PAD_MODES = {
    'constant': 'constant',   # zero fill
    'reflect': 'reflect',     # mirror, edge sample not repeated
    'wrap': 'wrap',           # circular
    'edge': 'edge',           # repeat boundary sample
}


def pad(y: np.ndarray, left_pad: int, right_pad: int, pad_mode: str = 'constant') -> np.ndarray:
    """
    Pad a signal on both sides.

    Args:
        y: 1-D input signal
        left_pad: Number of samples to add before the signal
        right_pad: Number of samples to add after the signal
        pad_mode: 'constant', 'reflect', 'wrap' or 'edge' (case-insensitive)

    Returns:
        Signal of length len(y) + left_pad + right_pad
    """
    try:
        mode = PAD_MODES[str(pad_mode).lower()]
    except KeyError:
        raise UnsupportedPadModeError(pad_mode) from None

    if left_pad < 0 or right_pad < 0:
        raise InvalidArgumentError(f"Pad widths must be non-negative, got ({left_pad}, {right_pad})")

    y = np.asarray(y)
    if left_pad == 0 and right_pad == 0:
        return y.copy()
    if len(y) == 0 and mode != 'constant':
        raise InvalidArgumentError(f"Cannot apply '{pad_mode}' padding to an empty signal")

    return np.pad(y, (left_pad, right_pad), mode=mode)


def num_frames(length: int, n_fft: int, hop_length: int, center: bool = True) -> int:
    """
    Number of STFT frames for a signal of ``length`` samples.

    With ``center`` the count is taken over the signal padded by n_fft // 2 on
    both sides; otherwise only frames that start inside the signal are counted.
    """
    if center:
        padded_length = length + 2 * (n_fft // 2)
        return (padded_length - n_fft) // hop_length + 1
    return (length - n_fft + hop_length) // hop_length


def frame(y: np.ndarray, frame_length: int, hop_length: int, n_frames: int) -> np.ndarray:
    """
    Slice a signal into overlapping frames.

    Frame t starts at sample t * hop_length; a frame running past the end of
    the signal is zero-extended.

    Returns:
        Frames, shape (n_frames, frame_length)
    """
    if frame_length < 1 or hop_length < 1:
        raise InvalidArgumentError(
            f"frame_length and hop_length must be positive, got {frame_length}, {hop_length}"
        )
    if n_frames < 0:
        raise InvalidArgumentError(f"n_frames must be non-negative, got {n_frames}")

    y = np.asarray(y)
    required = (n_frames - 1) * hop_length + frame_length if n_frames > 0 else 0
    if required > len(y):
        y = np.pad(y, (0, required - len(y)), mode='constant')

    # Vectorized frame extraction
    frame_starts = np.arange(n_frames) * hop_length
    frame_indices = frame_starts[:, np.newaxis] + np.arange(frame_length)

    return y[frame_indices]
