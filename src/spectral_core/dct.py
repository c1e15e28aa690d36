"""
Orthonormal Type-II Discrete Cosine Transform and its inverse.
"""

import numpy as np
from typing import Optional, Union

from .errors import InvalidArgumentError
from .fft import FFTBackend, get_backend


def dct(
    x: np.ndarray,
    n_coeffs: Optional[int] = None,
    axis: int = 0,
    backend: Union[str, FFTBackend, None] = None
) -> np.ndarray:
    """
    Orthonormal DCT-II along ``axis`` (columns of a matrix by default).

    The length-N sequence is mirror-extended to 2N, transformed with the FFT
    and rotated by exp(-iπk / 2N); the real part is scaled by sqrt(1/N) / 2
    for k = 0 and sqrt(2/N) / 2 otherwise. This equals
    scipy.fftpack.dct(x, type=2, norm='ortho').

    Args:
        x: Real input, 1-D or N-D
        n_coeffs: Keep only the first n_coeffs coefficients
        axis: Axis to transform
        backend: FFT implementation

    Returns:
        DCT coefficients, same shape as ``x`` except along ``axis``
    """
    x = np.asarray(x, dtype=np.float64)
    if x.ndim == 0:
        raise InvalidArgumentError("DCT input must have at least one dimension")

    x = np.moveaxis(x, axis, -1)
    N = x.shape[-1]
    if N == 0:
        raise InvalidArgumentError("DCT input is empty along the transform axis")
    if n_coeffs is None:
        n_coeffs = N
    if not 0 < n_coeffs <= N:
        raise InvalidArgumentError(f"n_coeffs must be in [1, {N}], got {n_coeffs}")

    extended = np.concatenate([x, x[..., ::-1]], axis=-1)
    spectrum = get_backend(backend).forward(extended.astype(np.complex128))[..., :N]

    k = np.arange(N)
    result = np.real(spectrum * np.exp(-1j * np.pi * k / (2 * N)))

    result[..., 0] *= np.sqrt(1.0 / N) / 2
    result[..., 1:] *= np.sqrt(2.0 / N) / 2

    return np.moveaxis(result[..., :n_coeffs], -1, axis)


def dct_matrix(n_coeffs: int, N: int) -> np.ndarray:
    """
    Orthonormal DCT-II basis, shape (n_coeffs, N).

    Row k is cos(π * k * (n + 0.5) / N), scaled by 1/sqrt(N) for k = 0 and
    sqrt(2/N) otherwise.
    """
    n = np.arange(N)
    k = np.arange(n_coeffs)[:, np.newaxis]

    basis = np.cos(np.pi * k * (n + 0.5) / N)
    basis[0] *= 1.0 / np.sqrt(N)
    basis[1:] *= np.sqrt(2.0 / N)
    return basis


def idct(X: np.ndarray, n: Optional[int] = None, axis: int = 0) -> np.ndarray:
    """
    Inverse of the orthonormal DCT-II (an orthonormal DCT-III).

    Args:
        X: DCT coefficients
        n: Output length; missing high coefficients are treated as zero
        axis: Axis holding the coefficients

    Returns:
        Reconstructed sequence of length n along ``axis``
    """
    X = np.asarray(X, dtype=np.float64)
    X = np.moveaxis(X, axis, -1)
    n_coeffs = X.shape[-1]
    if n is None:
        n = n_coeffs
    if n_coeffs == 0 or not 0 < n_coeffs <= n:
        raise InvalidArgumentError(f"Cannot invert {n_coeffs} coefficients to length {n}")

    # The basis is orthonormal, so its transpose inverts it
    result = np.dot(X, dct_matrix(n_coeffs, n))
    return np.moveaxis(result, -1, axis)
