"""
spectral_core - STFT/ISTFT, Mel Filterbank and MFCC Implementations

Short-time spectral analysis of in-memory audio signals and the
perceptual features derived from it, written to match librosa's
numerical conventions.

Modules:
    - fft: Cooley-Tukey FFT (Numba JIT) and injectable FFT backends
    - window: Bartlett, Blackman, Hamming, Hann and Welch windows
    - framing: Boundary padding and frame slicing
    - stft: Short-Time Fourier Transform and overlap-add inverse
    - mel: Mel scale conversion and mel filterbank
    - dct: Orthonormal DCT-II and its inverse
    - convert: Frame/sample/time conversions and decibel scaling
    - features: Mel spectrogram and MFCC extraction
"""

from .errors import (
    SpectralError,
    InvalidArgumentError,
    UnsupportedWindowTypeError,
    UnsupportedPadModeError,
)
from .fft import fft, ifft, rfft, irfft, FFTBackend, get_backend, register_backend
from .window import get_window, pad_window
from .framing import pad, frame, num_frames
from .stft import stft, istft, window_sum_square
from .mel import hz_to_mel, mel_to_hz, fft_frequencies, mel_frequencies, mel_filterbank, apply_mel_filters
from .dct import dct, idct
from .convert import power_to_db, db_to_power, amplitude_to_db, db_to_amplitude
from .features import (
    FeatureConfig,
    load_config,
    power_spectrum,
    extract_mel,
    extract_mfcc,
    extract,
    FEATURE_EXTRACTORS,
)

__all__ = [
    # Errors
    'SpectralError',
    'InvalidArgumentError',
    'UnsupportedWindowTypeError',
    'UnsupportedPadModeError',
    # FFT functions
    'fft',
    'ifft',
    'rfft',
    'irfft',
    'FFTBackend',
    'get_backend',
    'register_backend',
    # Windows and framing
    'get_window',
    'pad_window',
    'pad',
    'frame',
    'num_frames',
    # STFT functions
    'stft',
    'istft',
    'window_sum_square',
    # Mel functions
    'hz_to_mel',
    'mel_to_hz',
    'fft_frequencies',
    'mel_frequencies',
    'mel_filterbank',
    'apply_mel_filters',
    # DCT
    'dct',
    'idct',
    # Decibel conversions
    'power_to_db',
    'db_to_power',
    'amplitude_to_db',
    'db_to_amplitude',
    # Features
    'FeatureConfig',
    'load_config',
    'power_spectrum',
    'extract_mel',
    'extract_mfcc',
    'extract',
    'FEATURE_EXTRACTORS',
]

__version__ = '1.0.0'
