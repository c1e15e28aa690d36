"""
FFT capability used by the STFT, ISTFT and DCT.

The default backend is a Cooley-Tukey FFT compiled with Numba:
1. Numba JIT compilation (nopython mode)
2. Iterative (non-recursive) radix-2 butterflies with in-place bit reversal
3. Naive DFT fallback for lengths that are not a power of two
4. Compiled functions are cached on disk

The transforms only ever see an ``FFTBackend``, so ``numpy.fft`` (or any other
implementation with the same contract) can be swapped in per call.
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

import numpy as np
from numba import jit, prange

from .errors import InvalidArgumentError


@jit(nopython=True, cache=True)
def _bit_reverse(x: int, n_bits: int) -> int:
    """Reverse the bits of x with n_bits."""
    result = 0
    for _ in range(n_bits):
        result = (result << 1) | (x & 1)
        x >>= 1
    return result


@jit(nopython=True, cache=True)
def _fft_radix2_iter(x: np.ndarray) -> np.ndarray:
    """Iterative Cooley-Tukey radix-2 DIT FFT (Numba JIT)."""
    N = len(x)
    n_bits = int(math.log2(N))

    # Bit-reversal permutation
    X = np.empty(N, dtype=np.complex128)
    for i in range(N):
        j = _bit_reverse(i, n_bits)
        X[j] = x[i]

    # Stages of size 2, 4, 8, ..., N
    stage_size = 2
    while stage_size <= N:
        half_size = stage_size // 2
        w_step = -2j * np.pi / stage_size

        for k in range(0, N, stage_size):
            for j in range(half_size):
                # Twiddles are evaluated directly; accumulating w *= w_mult
                # drifts by ~1e-13 at N=4096
                w = np.exp(w_step * j)
                even_idx = k + j
                odd_idx = k + j + half_size

                even = X[even_idx]
                odd = X[odd_idx] * w

                X[even_idx] = even + odd
                X[odd_idx] = even - odd

        stage_size *= 2

    return X


@jit(nopython=True, cache=True)
def _dft_naive_jit(x: np.ndarray) -> np.ndarray:
    """Naive DFT for non-power-of-2 lengths (JIT compiled)."""
    N = len(x)
    X = np.empty(N, dtype=np.complex128)

    for k in range(N):
        s = 0j
        for n in range(N):
            s += x[n] * np.exp(-2j * np.pi * ((k * n) % N) / N)
        X[k] = s

    return X


@jit(nopython=True, cache=True)
def _fft_core(x: np.ndarray) -> np.ndarray:
    """Core FFT: handles both power-of-2 and arbitrary lengths."""
    N = len(x)

    if N > 0 and N & (N - 1) == 0:
        return _fft_radix2_iter(x)
    else:
        return _dft_naive_jit(x)


@jit(nopython=True, cache=True, parallel=True)
def _fft_rows(x: np.ndarray) -> np.ndarray:
    """Forward FFT of every row of a 2-D complex array."""
    n_rows, n = x.shape
    result = np.empty((n_rows, n), dtype=np.complex128)

    for i in prange(n_rows):
        result[i] = _fft_core(x[i])

    return result


def fft(x: np.ndarray, n: Optional[int] = None, axis: int = -1, norm: str = "backward") -> np.ndarray:
    """
    Compute the 1-D discrete Fourier Transform using Cooley-Tukey FFT.

    Parameters
    ----------
    x : np.ndarray
        Input array
    n : int, optional
        Length of the transformed axis. If None, uses the length of x.
    axis : int
        Axis along which to compute the FFT (default: -1)
    norm : str
        Normalization mode: "backward", "ortho", or "forward"

    Returns
    -------
    np.ndarray
        The transformed array

    Examples
    --------
    >>> x = np.array([1.0, 2.0, 1.0, -1.0, 1.5, 1.0, 0.5, -0.5])
    >>> X = fft(x)
    >>> # Matches numpy.fft.fft(x)
    """
    if norm not in ("backward", "ortho", "forward"):
        raise InvalidArgumentError(f"Unknown FFT normalization: {norm}")

    x = np.asarray(x)

    if n is None:
        n = x.shape[axis]
    if n < 1:
        raise InvalidArgumentError(f"FFT length must be positive, got {n}")

    x = np.moveaxis(x, axis, -1)

    # Pad or truncate to desired length
    if x.shape[-1] < n:
        pad_width = [(0, 0)] * (x.ndim - 1) + [(0, n - x.shape[-1])]
        x = np.pad(x, pad_width, mode='constant', constant_values=0)
    elif x.shape[-1] > n:
        x = x[..., :n]

    original_shape = x.shape
    x_2d = np.ascontiguousarray(x.reshape(-1, n), dtype=np.complex128)
    result = _fft_rows(x_2d).reshape(original_shape)

    if norm == "ortho":
        result = result / np.sqrt(n)
    elif norm == "forward":
        result = result / n

    return np.moveaxis(result, -1, axis)


def ifft(x: np.ndarray, n: Optional[int] = None, axis: int = -1, norm: str = "backward") -> np.ndarray:
    """
    Compute the 1-D inverse discrete Fourier Transform.

    IFFT(x) = conj(FFT(conj(x))) / N
    """
    x = np.asarray(x)
    x_conj = np.conj(x)

    if norm == "backward":
        result = fft(x_conj, n=n, axis=axis, norm="forward")
    elif norm == "forward":
        result = fft(x_conj, n=n, axis=axis, norm="backward")
    else:
        result = fft(x_conj, n=n, axis=axis, norm=norm)

    return np.conj(result)


def rfft(x: np.ndarray, n: Optional[int] = None, axis: int = -1, norm: str = "backward") -> np.ndarray:
    """
    Compute the 1-D FFT for real input.

    Returns only the non-negative frequency terms (one-sided spectrum).
    """
    x = np.asarray(x, dtype=np.float64)

    X = fft(x, n=n, axis=axis, norm=norm)

    N = X.shape[axis]
    slices = [slice(None)] * X.ndim
    slices[axis] = slice(0, N // 2 + 1)

    return X[tuple(slices)]


def irfft(x: np.ndarray, n: Optional[int] = None, axis: int = -1, norm: str = "backward") -> np.ndarray:
    """
    Compute the inverse FFT of a one-sided (Hermitian) spectrum.
    """
    x = np.asarray(x, dtype=np.complex128)

    if n is None:
        n = 2 * (x.shape[axis] - 1)

    x = np.moveaxis(x, axis, -1)
    n_bins = n // 2 + 1
    if x.shape[-1] < n_bins:
        pad_width = [(0, 0)] * (x.ndim - 1) + [(0, n_bins - x.shape[-1])]
        x = np.pad(x, pad_width, mode='constant')
    x = x[..., :n_bins]

    # Reconstruct full spectrum using Hermitian symmetry
    if n % 2 == 0:
        neg_freqs = np.conj(x[..., -2:0:-1])
    else:
        neg_freqs = np.conj(x[..., -1:0:-1])

    X_full = np.concatenate([x, neg_freqs], axis=-1)
    X_full = np.moveaxis(X_full, -1, axis)

    result = ifft(X_full, n=n, axis=axis, norm=norm)
    return np.real(result)


# ============== Injectable backends ==============

@dataclass(frozen=True)
class FFTBackend:
    """
    A pair of complex transforms over the last axis of an array.

    ``forward`` is the unnormalized DFT, ``inverse`` divides by the length.
    """
    name: str
    forward: Callable[[np.ndarray], np.ndarray]
    inverse: Callable[[np.ndarray], np.ndarray]


NUMBA_BACKEND = FFTBackend(
    name='numba',
    forward=lambda x: fft(x, axis=-1),
    inverse=lambda x: ifft(x, axis=-1),
)

NUMPY_BACKEND = FFTBackend(
    name='numpy',
    forward=lambda x: np.fft.fft(x, axis=-1),
    inverse=lambda x: np.fft.ifft(x, axis=-1),
)

_BACKENDS: Dict[str, FFTBackend] = {
    NUMBA_BACKEND.name: NUMBA_BACKEND,
    NUMPY_BACKEND.name: NUMPY_BACKEND,
}

DEFAULT_BACKEND = NUMBA_BACKEND.name


def register_backend(backend: FFTBackend) -> None:
    """Make ``backend`` available to ``get_backend`` under its name."""
    _BACKENDS[backend.name] = backend


def available_backends():
    """Names of the registered backends."""
    return sorted(_BACKENDS)


def get_backend(backend: Union[str, FFTBackend, None] = None) -> FFTBackend:
    """
    Resolve a backend name or instance.

    ``None`` selects the default backend, a string is looked up in the
    registry and an ``FFTBackend`` instance is returned unchanged.
    """
    if backend is None:
        backend = DEFAULT_BACKEND
    if isinstance(backend, FFTBackend):
        return backend
    try:
        return _BACKENDS[str(backend).lower()]
    except KeyError:
        raise InvalidArgumentError(
            f"Unknown FFT backend: {backend} (available: {', '.join(available_backends())})"
        ) from None


if __name__ == "__main__":
    # python -m spectral_core.fft
    import time

    print("=" * 70)
    print("FFT backend comparison")
    print("=" * 70)

    # Warm up JIT compilation
    _ = fft(np.random.randn(1024))

    print(f"{'N':>6} | {'numba (ms)':>10} | {'numpy (ms)':>10} | {'max error':>10}")
    print("-" * 50)
    for N in [256, 512, 1024, 2048, 4096]:
        x = np.random.randn(N)
        n_iter = 200

        start = time.time()
        for _ in range(n_iter):
            X_ours = fft(x)
        time_ours = (time.time() - start) / n_iter * 1000

        start = time.time()
        for _ in range(n_iter):
            X_ref = np.fft.fft(x)
        time_ref = (time.time() - start) / n_iter * 1000

        error = np.abs(X_ours - X_ref).max()
        print(f"{N:6d} | {time_ours:10.4f} | {time_ref:10.4f} | {error:10.2e}")
