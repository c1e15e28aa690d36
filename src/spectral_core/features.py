"""
Mel spectrogram and MFCC feature extraction.

Pipeline:
    signal -> STFT -> power spectrum -> mel filterbank -> mel spectrogram
                                              (MFCC only) -> dB -> DCT-II

Extractors are plain functions taking the signal and an immutable
``FeatureConfig``.
"""

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

import numpy as np
import yaml

from .convert import power_to_db
from .dct import dct
from .errors import InvalidArgumentError
from .fft import FFTBackend
from .mel import apply_mel_filters, mel_filterbank
from .stft import stft
from .utils.logging import get_logger

logger = get_logger(__name__)

# Reference power, floor and dynamic range of the MFCC log compression
MFCC_REF = 1.0
MFCC_AMIN = 1e-10
MFCC_TOP_DB = 80.0

# Accepted configuration keys -> FeatureConfig field
_KEY_ALIASES = {
    'sampleRate': 'sample_rate',
    'sr': 'sample_rate',
    'nFft': 'n_fft',
    'hopLength': 'hop_length',
    'featureSize': 'feature_size',
    'fMin': 'f_min',
    'fmin': 'f_min',
    'fMax': 'f_max',
    'fmax': 'f_max',
    'nMels': 'n_mels',
    'winLength': 'win_length',
}

# Keys giving feature_size when it is absent, per feature kind
_FEATURE_SIZE_KEYS = {
    'mel': ('n_mels', 'nMels'),
    'mfcc': ('n_mfcc', 'nMfcc'),
}


@dataclass(frozen=True)
class FeatureConfig:
    """
    Immutable feature extraction configuration.

    ``f_max`` defaults to the Nyquist frequency of ``sample_rate`` and
    ``win_length`` to ``n_fft``; both are resolved at construction.
    ``feature_size`` is the number of mel bands for ``extract_mel`` and the
    number of coefficients kept by ``extract_mfcc``, whose mel stage always
    uses ``n_mels`` bands.
    """

    sample_rate: int
    n_fft: int
    hop_length: int
    feature_size: int
    f_min: float = 0.0
    f_max: Optional[float] = None
    n_mels: int = 128
    window: str = 'hann'
    win_length: Optional[int] = None
    htk: bool = False

    def __post_init__(self):
        for name in ('sample_rate', 'n_fft', 'hop_length', 'feature_size', 'n_mels'):
            value = getattr(self, name)
            if value is None or value <= 0:
                raise InvalidArgumentError(f"{name} must be positive, got {value}")

        if self.f_max is None:
            object.__setattr__(self, 'f_max', self.sample_rate / 2.0)
        if self.win_length is None:
            object.__setattr__(self, 'win_length', self.n_fft)

        if not 0 <= self.f_min < self.f_max:
            raise InvalidArgumentError(f"Need 0 <= f_min < f_max, got f_min={self.f_min}, f_max={self.f_max}")
        if not 0 < self.win_length <= self.n_fft:
            raise InvalidArgumentError(f"win_length must be in [1, n_fft={self.n_fft}], got {self.win_length}")

    @property
    def nyquist(self) -> float:
        return self.sample_rate / 2.0

    def with_overrides(self, **changes) -> 'FeatureConfig':
        """
        Copy with some fields replaced.

        A new ``sample_rate`` without an explicit ``f_max`` resets ``f_max``
        to the new Nyquist frequency; likewise ``n_fft`` and ``win_length``.
        """
        if 'sample_rate' in changes and 'f_max' not in changes:
            changes['f_max'] = None
        if 'n_fft' in changes and 'win_length' not in changes:
            changes['win_length'] = None
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_dict(cls, mapping: Mapping[str, Any], feature: str = 'mfcc', **defaults) -> 'FeatureConfig':
        """
        Build a config from a mapping.

        Both snake_case field names and camelCase keys (``sampleRate``,
        ``nFft``, ``hopLength``, ...) are accepted; unknown keys are ignored.
        Without ``feature_size``, the size key of ``feature`` is used:
        ``nMfcc``/``n_mfcc`` for 'mfcc', ``nMels``/``n_mels`` for 'mel'.
        ``defaults`` fill fields missing from the mapping.
        """
        if feature not in _FEATURE_SIZE_KEYS:
            raise InvalidArgumentError(
                f"Unknown feature '{feature}', expected one of {sorted(_FEATURE_SIZE_KEYS)}"
            )

        field_names = {f.name for f in dataclasses.fields(cls)}
        values = dict(defaults)
        if 'feature_size' not in mapping and 'featureSize' not in mapping:
            for key in _FEATURE_SIZE_KEYS[feature]:
                if key in mapping:
                    values['feature_size'] = mapping[key]
                    break
        for key, value in mapping.items():
            name = _KEY_ALIASES.get(key, key)
            if name in field_names:
                values[name] = value

        missing = {'sample_rate', 'n_fft', 'hop_length', 'feature_size'} - set(values)
        if missing:
            raise InvalidArgumentError(f"Missing configuration keys: {', '.join(sorted(missing))}")
        return cls(**values)


def load_config(path: Union[str, Path], feature: Optional[str] = None, **defaults) -> FeatureConfig:
    """
    Load a ``FeatureConfig`` from a YAML file.

    The file holds the configuration keys at top level, optionally under a
    ``features`` section. Keys are interpreted by ``FeatureConfig.from_dict``
    for the given ``feature`` ('mfcc' when None).
    """
    with open(path, 'r') as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise InvalidArgumentError(f"Cannot parse configuration file {path}: {e}") from e
    if not isinstance(data, dict):
        raise InvalidArgumentError(f"Configuration file {path} does not contain a mapping")
    if 'features' in data:
        data = data['features']
        if not isinstance(data, dict):
            raise InvalidArgumentError(f"'features' section of {path} is not a mapping")

    logger.debug("Loaded configuration from %s: %s", path, data)
    return FeatureConfig.from_dict(data, feature=feature or 'mfcc', **defaults)


def power_spectrum(stft_matrix: np.ndarray) -> np.ndarray:
    """|X|² for every bin and frame."""
    stft_matrix = np.asarray(stft_matrix)
    return stft_matrix.real ** 2 + stft_matrix.imag ** 2


def _mel_spectrogram(
    y: np.ndarray,
    config: FeatureConfig,
    n_mels: int,
    backend: Union[str, FFTBackend, None]
) -> np.ndarray:
    S = stft(
        y,
        n_fft=config.n_fft,
        hop_length=config.hop_length,
        win_length=config.win_length,
        window=config.window,
        center=True,
        backend=backend
    )
    mel_basis = mel_filterbank(
        sr=config.sample_rate,
        n_fft=config.n_fft,
        n_mels=n_mels,
        fmin=config.f_min,
        fmax=config.f_max,
        htk=config.htk
    )
    return apply_mel_filters(power_spectrum(S), mel_basis)


def extract_mel(
    y: np.ndarray,
    config: FeatureConfig,
    backend: Union[str, FFTBackend, None] = None
) -> np.ndarray:
    """
    Compute a mel spectrogram with ``config.feature_size`` bands.

    Returns:
        Mel power spectrogram, shape (feature_size, n_frames)
    """
    mel_spec = _mel_spectrogram(y, config, config.feature_size, backend)
    logger.debug("mel features: %s", mel_spec.shape)
    return mel_spec


def extract_mfcc(
    y: np.ndarray,
    config: FeatureConfig,
    backend: Union[str, FFTBackend, None] = None
) -> np.ndarray:
    """
    Compute mel-frequency cepstral coefficients.

    A ``config.n_mels``-band mel spectrogram is converted to dB
    (ref 1.0, amin 1e-10, 80 dB range), transformed column-wise with the
    orthonormal DCT-II and truncated to ``config.feature_size`` rows.

    Returns:
        MFCC matrix, shape (feature_size, n_frames)
    """
    if config.feature_size > config.n_mels:
        raise InvalidArgumentError(
            f"Cannot take {config.feature_size} coefficients from {config.n_mels} mel bands"
        )

    mel_spec = _mel_spectrogram(y, config, config.n_mels, backend)
    log_mel = power_to_db(mel_spec, ref=MFCC_REF, amin=MFCC_AMIN, top_db=MFCC_TOP_DB)

    mfccs = dct(log_mel, n_coeffs=config.feature_size, axis=0, backend=backend)
    logger.debug("mfcc features: %s", mfccs.shape)
    return mfccs


FEATURE_EXTRACTORS: Dict[str, Callable[..., np.ndarray]] = {
    'mel': extract_mel,
    'mfcc': extract_mfcc,
}


def extract(
    kind: str,
    y: np.ndarray,
    config: FeatureConfig,
    backend: Union[str, FFTBackend, None] = None
) -> np.ndarray:
    """Run the extractor registered under ``kind`` ('mel' or 'mfcc')."""
    try:
        extractor = FEATURE_EXTRACTORS[kind]
    except KeyError:
        raise InvalidArgumentError(
            f"Unknown feature type: {kind} (available: {', '.join(FEATURE_EXTRACTORS)})"
        ) from None
    return extractor(y, config, backend=backend)
