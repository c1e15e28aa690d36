import numpy as np
from typing import Union, Optional

from .errors import InvalidArgumentError
from .fft import FFTBackend, get_backend
from .framing import frame, num_frames, pad
from .utils.logging import get_logger
from .window import get_window, pad_window

logger = get_logger(__name__)

# Envelope values at or below this are treated as "no window energy"
WINDOW_SUM_EPS = 1e-15


def _check_positive(**values) -> None:
    for name, value in values.items():
        if value is None or value <= 0:
            raise InvalidArgumentError(f"{name} must be positive, got {value}")


def _analysis_window(window: Union[str, np.ndarray], win_length: int, n_fft: int) -> np.ndarray:
    """Periodic analysis window of ``win_length`` samples centred in ``n_fft``."""
    if isinstance(window, np.ndarray):
        if len(window) != win_length:
            raise InvalidArgumentError(f"Custom window length {len(window)} != win_length {win_length}")
        window_func = np.asarray(window, dtype=np.float64)
    else:
        window_func = get_window(window, win_length, periodic=True)
    return pad_window(window_func, n_fft)


def stft(
    y: np.ndarray,
    n_fft: int = 2048,
    hop_length: Optional[int] = None,
    win_length: Optional[int] = None,
    window: Union[str, np.ndarray] = 'hann',
    center: bool = True,
    pad_mode: str = 'constant',
    backend: Union[str, FFTBackend, None] = None
) -> np.ndarray:
    """
    Short-Time Fourier Transform.

    Parameters
    ----------
    y : np.ndarray
        Real 1-D signal
    n_fft : int
        FFT frame length
    hop_length : int, optional
        Samples between successive frames (default: n_fft // 4)
    win_length : int, optional
        Analysis window length, zero-padded to n_fft (default: n_fft)
    window : str or np.ndarray
        Window family name or custom window of length win_length
    center : bool
        If True, pad the signal by n_fft // 2 on both sides so that frame t
        is centred at y[t * hop_length]
    pad_mode : str
        Boundary policy for the centring pad
    backend : str or FFTBackend, optional
        FFT implementation (default: the numba backend)

    Returns
    -------
    np.ndarray
        Complex spectrogram, shape (n_fft // 2 + 1, n_frames)

    Examples
    --------
    >>> y = np.random.randn(22050)  # 1 second at 22050 Hz
    >>> D = stft(y, n_fft=2048, hop_length=512)
    >>> D.shape  # (1025, 44) -> 1025 freq bins, 44 time frames
    """
    y = np.asarray(y, dtype=np.float64)
    if y.ndim != 1:
        raise InvalidArgumentError(f"Input must be 1D, got shape {y.shape}")
    if len(y) == 0:
        raise InvalidArgumentError("Input signal is empty")

    if hop_length is None:
        hop_length = n_fft // 4
    if win_length is None:
        win_length = n_fft
    _check_positive(n_fft=n_fft, hop_length=hop_length, win_length=win_length)

    fft_backend = get_backend(backend)
    window_func = _analysis_window(window, win_length, n_fft)

    n_frames = num_frames(len(y), n_fft, hop_length, center=center)
    if n_frames < 1:
        raise InvalidArgumentError(
            f"Signal of length {len(y)} is shorter than one frame (n_fft={n_fft}, center={center})"
        )

    if center:
        y = pad(y, n_fft // 2, n_fft // 2, pad_mode)

    frames = frame(y, n_fft, hop_length, n_frames)
    windowed_frames = frames * window_func

    n_bins = n_fft // 2 + 1
    spectrum = fft_backend.forward(windowed_frames.astype(np.complex128))
    # Real input: keep the non-negative frequency half
    stft_matrix = np.ascontiguousarray(spectrum[:, :n_bins].T)

    logger.debug("stft: %d samples -> %s (backend=%s)", len(y), stft_matrix.shape, fft_backend.name)
    return stft_matrix


def window_sum_square(
    window: np.ndarray,
    n_frames: int,
    hop_length: int,
    n_fft: Optional[int] = None
) -> np.ndarray:
    """
    Sum-square envelope of a window repeated every ``hop_length`` samples.

    Entry i is the total of window[k]**2 over every frame that covers
    sample i, i.e. the window energy deposited there by overlap-add.

    Returns
    -------
    np.ndarray
        Envelope of length n_fft + hop_length * (n_frames - 1)
    """
    window = np.asarray(window, dtype=np.float64)
    if n_fft is None:
        n_fft = len(window)
    _check_positive(n_fft=n_fft, hop_length=hop_length)

    length = n_fft + hop_length * (n_frames - 1)
    envelope = np.zeros(max(length, 0))
    win_sq = window ** 2

    for i in range(n_frames):
        start = i * hop_length
        end = min(start + len(win_sq), length)
        envelope[start:end] += win_sq[:end - start]

    return envelope


def istft(
    stft_matrix: np.ndarray,
    n_fft: Optional[int] = None,
    hop_length: Optional[int] = None,
    win_length: Optional[int] = None,
    window: Union[str, np.ndarray] = 'hann',
    center: bool = True,
    backend: Union[str, FFTBackend, None] = None
) -> np.ndarray:
    """
    Inverse Short-Time Fourier Transform by weighted overlap-add.

    Each column is completed to a full Hermitian spectrum, inverse
    transformed, windowed and accumulated at frame * hop_length (shifted
    back by n_fft // 2 when ``center``). The sum is divided by the
    window-sum-square envelope wherever it exceeds 1e-15.

    Samples outside full frame coverage are not exactly reconstructed.

    Returns
    -------
    np.ndarray
        Signal of length n_fft + hop_length * (n_frames - 1), minus n_fft
        when ``center``
    """
    stft_matrix = np.asarray(stft_matrix, dtype=np.complex128)
    if stft_matrix.ndim != 2:
        raise InvalidArgumentError(f"STFT matrix must be 2D, got shape {stft_matrix.shape}")

    n_bins, n_frames = stft_matrix.shape
    if n_fft is None:
        n_fft = 2 * (n_bins - 1)
    if hop_length is None:
        hop_length = n_fft // 4
    if win_length is None:
        win_length = n_fft
    _check_positive(n_fft=n_fft, hop_length=hop_length, win_length=win_length)

    if n_bins != n_fft // 2 + 1:
        raise InvalidArgumentError(f"STFT matrix has {n_bins} bins, expected {n_fft // 2 + 1} for n_fft={n_fft}")
    if n_frames < 1:
        raise InvalidArgumentError("STFT matrix has no frames")

    fft_backend = get_backend(backend)
    window_func = _analysis_window(window, win_length, n_fft)

    expected_length = n_fft + hop_length * (n_frames - 1)
    if center:
        expected_length -= n_fft
    y = np.zeros(expected_length)

    # Full spectrum per frame: bins n_bins..n_fft-1 mirror the conjugates of
    # bins n_fft-n_bins..1; DC and Nyquist are never mirrored
    full_spectrum = np.zeros((n_frames, n_fft), dtype=np.complex128)
    full_spectrum[:, :n_bins] = stft_matrix.T
    full_spectrum[:, n_bins:] = np.conj(stft_matrix[1:n_fft - n_bins + 1][::-1].T)

    frames = np.real(fft_backend.inverse(full_spectrum)) * window_func

    # Overlap-add
    shift = n_fft // 2 if center else 0
    for i in range(n_frames):
        pos = i * hop_length - shift
        lo = max(pos, 0)
        hi = min(pos + n_fft, expected_length)
        if lo < hi:
            y[lo:hi] += frames[i, lo - pos:hi - pos]

    envelope = window_sum_square(window_func, n_frames, hop_length, n_fft)
    if center:
        envelope = envelope[n_fft // 2:]
    envelope = envelope[:expected_length]

    # Normalize by window overlap, leaving uncovered samples untouched
    covered = envelope > WINDOW_SUM_EPS
    y[covered] /= envelope[covered]

    logger.debug("istft: %s -> %d samples", stft_matrix.shape, expected_length)
    return y
