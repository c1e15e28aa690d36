"""
Mel scale conversion and mel filterbank construction.

Two mel scales are supported:
    - Slaney (default): linear below 1 kHz, logarithmic above, matched in
      value and slope at the 1 kHz breakpoint
    - HTK: mel = 2595 * log10(1 + f / 700)
"""

from functools import lru_cache
from typing import Optional

import numpy as np

from .errors import InvalidArgumentError
from .utils.logging import get_logger

logger = get_logger(__name__)

# Slaney scale constants
F_MIN = 0.0
F_SP = 200.0 / 3.0  # ~66.67 Hz per mel
MIN_LOG_HZ = 1000.0  # Transition point
MIN_LOG_MEL = (MIN_LOG_HZ - F_MIN) / F_SP
LOGSTEP = np.log(6.4) / 27.0


def hz_to_mel(frequencies, htk: bool = False) -> np.ndarray:
    """
    Convert Hz to mels.

    Args:
        frequencies: Frequencies in Hz (scalar or array)
        htk: Use the HTK formula instead of Slaney

    Returns:
        Frequencies on the mel scale
    """
    frequencies = np.asarray(frequencies, dtype=np.float64)

    if htk:
        return 2595.0 * np.log10(1.0 + frequencies / 700.0)

    # np.maximum keeps log() away from zero in the unused branch
    return np.where(
        frequencies >= MIN_LOG_HZ,
        MIN_LOG_MEL + np.log(np.maximum(frequencies, MIN_LOG_HZ) / MIN_LOG_HZ) / LOGSTEP,
        (frequencies - F_MIN) / F_SP
    )


def mel_to_hz(mels, htk: bool = False) -> np.ndarray:
    """
    Convert mels to Hz; the exact inverse of ``hz_to_mel``.

    Args:
        mels: Mel values (scalar or array)
        htk: Use the HTK formula instead of Slaney

    Returns:
        Frequencies in Hz
    """
    mels = np.asarray(mels, dtype=np.float64)

    if htk:
        return 700.0 * (10.0 ** (mels / 2595.0) - 1.0)

    return np.where(
        mels >= MIN_LOG_MEL,
        MIN_LOG_HZ * np.exp(LOGSTEP * (mels - MIN_LOG_MEL)),
        F_MIN + F_SP * mels
    )


def fft_frequencies(sr: float, n_fft: int) -> np.ndarray:
    """Centre frequencies of the n_fft // 2 + 1 FFT bins: i * sr / n_fft."""
    return np.arange(n_fft // 2 + 1) * sr / n_fft


def mel_frequencies(n_mels: int = 128, fmin: float = 0.0, fmax: float = 11025.0, htk: bool = False) -> np.ndarray:
    """
    Frequencies (Hz) of ``n_mels`` points evenly spaced on the mel scale.

    Args:
        n_mels: Number of points, including both end points
        fmin: Lowest frequency in Hz
        fmax: Highest frequency in Hz
        htk: Use the HTK formula

    Returns:
        Array of n_mels frequencies in Hz
    """
    min_mel = hz_to_mel(fmin, htk=htk)
    max_mel = hz_to_mel(fmax, htk=htk)
    mels = np.linspace(min_mel, max_mel, n_mels)
    return mel_to_hz(mels, htk=htk)


@lru_cache(maxsize=32)
def _build_filterbank(sr: float, n_fft: int, n_mels: int, fmin: float, fmax: float, htk: bool) -> np.ndarray:
    fftfreqs = fft_frequencies(sr, n_fft)
    mel_f = mel_frequencies(n_mels + 2, fmin=fmin, fmax=fmax, htk=htk)

    fdiff = np.diff(mel_f)
    ramps = mel_f[:, np.newaxis] - fftfreqs[np.newaxis, :]

    # Rising slope from mel_f[i] to mel_f[i+1], falling to mel_f[i+2]
    lower = -ramps[:n_mels] / fdiff[:n_mels, np.newaxis]
    upper = ramps[2:n_mels + 2] / fdiff[1:n_mels + 1, np.newaxis]
    weights = np.maximum(0.0, np.minimum(lower, upper))

    if htk:
        # Weights pass through the HTK mel -> Hz formula. This is not the
        # usual HTK filterbank; existing consumers rely on these values.
        weights = 700.0 * (10.0 ** (weights / 2595.0) - 1.0)
    else:
        # Slaney-style area normalization
        enorm = 2.0 / (mel_f[2:n_mels + 2] - mel_f[:n_mels])
        weights *= enorm[:, np.newaxis]

    weights.flags.writeable = False
    logger.debug("mel filterbank built: sr=%s n_fft=%d n_mels=%d fmin=%s fmax=%s htk=%s",
                 sr, n_fft, n_mels, fmin, fmax, htk)
    return weights


def mel_filterbank(
    sr: float,
    n_fft: int,
    n_mels: int = 128,
    fmin: float = 0.0,
    fmax: Optional[float] = None,
    htk: bool = False
) -> np.ndarray:
    """
    Create a mel filterbank.

    Args:
        sr: Sampling rate
        n_fft: FFT window size
        n_mels: Number of mel bands
        fmin: Lowest frequency in Hz
        fmax: Highest frequency in Hz (default: sr / 2)
        htk: Use the HTK mel scale (and HTK weight mapping) instead of Slaney

    Returns:
        Read-only weight matrix, shape (n_mels, 1 + n_fft // 2). Identical
        parameter sets share one cached matrix.
    """
    if sr <= 0:
        raise InvalidArgumentError(f"Sampling rate must be positive, got {sr}")
    if n_fft <= 0:
        raise InvalidArgumentError(f"n_fft must be positive, got {n_fft}")
    if n_mels <= 0:
        raise InvalidArgumentError(f"n_mels must be positive, got {n_mels}")
    if fmax is None:
        fmax = sr / 2.0
    if fmin < 0 or fmax <= fmin:
        raise InvalidArgumentError(f"Need 0 <= fmin < fmax, got fmin={fmin}, fmax={fmax}")

    return _build_filterbank(float(sr), int(n_fft), int(n_mels), float(fmin), float(fmax), bool(htk))


def apply_mel_filters(spectrogram: np.ndarray, mel_filters: np.ndarray) -> np.ndarray:
    """
    Apply mel filters to a power spectrogram.

    mel_spectrum[m, t] = Σ_k mel_filters[m, k] * spectrogram[k, t]

    Args:
        spectrogram: Shape (n_fft // 2 + 1, n_frames)
        mel_filters: Shape (n_mels, n_fft // 2 + 1)

    Returns:
        Mel spectrogram, shape (n_mels, n_frames)
    """
    spectrogram = np.asarray(spectrogram)
    mel_filters = np.asarray(mel_filters)
    if spectrogram.ndim != 2 or mel_filters.ndim != 2:
        raise InvalidArgumentError("Spectrogram and mel filters must both be 2D")
    if mel_filters.shape[1] != spectrogram.shape[0]:
        raise InvalidArgumentError(
            f"Mel filters cover {mel_filters.shape[1]} bins, spectrogram has {spectrogram.shape[0]}"
        )
    return np.dot(mel_filters, spectrogram)
