"""
Window functions for short-time analysis.

Every generator takes the window ``size`` and a ``periodic`` flag:

- periodic=True  ("DFT-even", N = size): the window used for FFT analysis,
  required for perfect overlap-add reconstruction.
- periodic=False (symmetric, N = size - 1): the filter-design window.
"""

from typing import Callable, Dict

import numpy as np

from .errors import InvalidArgumentError, UnsupportedWindowTypeError


def _period(size: int, periodic: bool) -> int:
    if size < 1:
        raise InvalidArgumentError(f"Window size must be positive, got {size}")
    N = size if periodic else size - 1
    if N == 0:
        raise InvalidArgumentError("A symmetric window needs at least 2 samples")
    return N


def bartlett(size: int, periodic: bool = True) -> np.ndarray:
    """Triangular window rising from 0 to a peak of 1 at N/2."""
    N = _period(size, periodic)
    n = np.arange(size)
    return np.where(n <= N // 2, 2.0 * n / N, 2.0 - 2.0 * n / N)


def blackman(size: int, periodic: bool = True) -> np.ndarray:
    """Blackman window: w[n] = 0.42 - 0.5*cos(2πn/N) + 0.08*cos(4πn/N)."""
    N = _period(size, periodic)
    n = np.arange(size)
    return (0.42
            - 0.5 * np.cos(2 * np.pi * n / N)
            + 0.08 * np.cos(4 * np.pi * n / N))


def hamming(size: int, periodic: bool = True) -> np.ndarray:
    """Hamming window: w[n] = 0.54 - 0.46 * cos(2πn/N)."""
    N = _period(size, periodic)
    n = np.arange(size)
    return 0.54 - 0.46 * np.cos(2 * np.pi * n / N)


def hann(size: int, periodic: bool = True) -> np.ndarray:
    """Hann window: w[n] = 0.5 * (1 - cos(2πn/N))."""
    N = _period(size, periodic)
    n = np.arange(size)
    return 0.5 * (1.0 - np.cos(2 * np.pi * n / N))


def welch(size: int, periodic: bool = True) -> np.ndarray:
    """Welch (parabolic) window: w[n] = 1 - ((n - N/2) / (N/2))^2."""
    N = _period(size, periodic)
    n = np.arange(size)
    return 1.0 - ((n - N / 2.0) / (N / 2.0)) ** 2


WINDOWS: Dict[str, Callable[[int, bool], np.ndarray]] = {
    'bartlett': bartlett,
    'blackman': blackman,
    'hamming': hamming,
    'hann': hann,
    'welch': welch,
}


def get_window(window: str, size: int, periodic: bool = True) -> np.ndarray:
    """
    Generate a window function by name.

    Parameters
    ----------
    window : str
        One of 'bartlett', 'blackman', 'hamming', 'hann', 'welch'
        (case-insensitive)
    size : int
        Length of the window
    periodic : bool
        If True, create a periodic window for use with the FFT.
        If False, create a symmetric window for filter design.

    Returns
    -------
    np.ndarray
        Window weights of length ``size``

    Raises
    ------
    UnsupportedWindowTypeError
        If the window family is unknown
    InvalidArgumentError
        If ``size`` is not positive, or is 1 for a symmetric window
    """
    try:
        generator = WINDOWS[str(window).lower()]
    except KeyError:
        raise UnsupportedWindowTypeError(window) from None
    return generator(size, periodic)


def pad_window(window: np.ndarray, n_fft: int) -> np.ndarray:
    """
    Zero-pad a window so that it sits centred in a frame of ``n_fft`` samples.

    When ``n_fft - len(window)`` is odd the extra zero goes on the right.
    """
    win_length = len(window)
    if win_length > n_fft:
        raise InvalidArgumentError(
            f"win_length ({win_length}) cannot be larger than n_fft ({n_fft})"
        )
    pad_left = (n_fft - win_length) // 2
    pad_right = n_fft - win_length - pad_left
    return np.pad(window, (pad_left, pad_right), mode='constant')
