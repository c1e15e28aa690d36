"""
Unit conversions: frame / sample / time / block indices and decibel scaling.

Index conversions accept scalars or array-likes and return the same kind.
"""

import numpy as np
from typing import Optional

from .errors import InvalidArgumentError


def _as_output(values, template):
    """Return a Python scalar when the input was a scalar."""
    if np.ndim(template) == 0:
        return values.item()
    return values


def frames_to_samples(frames, hop_length: int = 512, offset: int = 0):
    """Sample index of each frame: frame * hop_length + offset."""
    samples = np.asarray(frames, dtype=np.int64) * hop_length + offset
    return _as_output(samples, frames)


def samples_to_frames(samples, hop_length: int = 512, offset: int = 0):
    """Frame index containing each sample: floor((sample - offset) / hop_length)."""
    if hop_length <= 0:
        raise InvalidArgumentError(f"hop_length must be positive, got {hop_length}")
    frames = np.floor_divide(np.asarray(samples, dtype=np.int64) - offset, hop_length)
    return _as_output(frames, samples)


def time_to_samples(times, sr: float = 22050):
    """Sample index at each time (seconds), truncated toward zero."""
    samples = np.trunc(np.asarray(times, dtype=np.float64) * sr).astype(np.int64)
    return _as_output(samples, times)


def samples_to_time(samples, sr: float = 22050):
    """Time in seconds of each sample index."""
    if sr <= 0:
        raise InvalidArgumentError(f"Sampling rate must be positive, got {sr}")
    times = np.asarray(samples, dtype=np.float64) / sr
    return _as_output(times, samples)


def frames_to_time(frames, sr: float = 22050, hop_length: int = 512, offset: int = 0):
    """Time in seconds of each frame index."""
    return samples_to_time(frames_to_samples(frames, hop_length, offset), sr)


def time_to_frames(times, sr: float = 22050, hop_length: int = 512, offset: int = 0):
    """Frame index at each time (seconds)."""
    return samples_to_frames(time_to_samples(times, sr), hop_length, offset)


def blocks_to_frames(blocks, block_length: int):
    """First frame index of each block."""
    frames = np.asarray(blocks, dtype=np.int64) * block_length
    return _as_output(frames, blocks)


def blocks_to_samples(blocks, block_length: int, hop_length: int):
    """First sample index of each block."""
    return frames_to_samples(blocks_to_frames(blocks, block_length), hop_length, 0)


def blocks_to_time(blocks, block_length: int, hop_length: int, sr: float):
    """Start time in seconds of each block."""
    return samples_to_time(blocks_to_samples(blocks, block_length, hop_length), sr)


def _clip_top_db(S_db: np.ndarray, top_db: Optional[float]) -> np.ndarray:
    if top_db is None:
        return S_db
    if top_db < 0:
        raise InvalidArgumentError(f"top_db must be non-negative, got {top_db}")
    if S_db.size == 0:
        return S_db
    return np.maximum(S_db, S_db.max() - top_db)


def power_to_db(S: np.ndarray, ref: float = 1.0, amin: float = 1e-10, top_db: Optional[float] = 80.0) -> np.ndarray:
    """
    Convert a power spectrogram to decibels.

    S_db = 10 * log10(max(amin, S) / ref), then clipped to ``top_db`` below
    the peak. ``top_db=None`` disables clipping.
    """
    if amin <= 0:
        raise InvalidArgumentError(f"amin must be strictly positive, got {amin}")
    S = np.asarray(S, dtype=np.float64)
    S_db = 10.0 * np.log10(np.maximum(amin, S) / ref)
    return _clip_top_db(S_db, top_db)


def db_to_power(S_db: np.ndarray, ref: float = 1.0) -> np.ndarray:
    """Inverse of ``power_to_db`` (before clipping): ref * 10^(S_db / 10)."""
    return ref * np.power(10.0, np.asarray(S_db, dtype=np.float64) / 10.0)


def amplitude_to_db(S: np.ndarray, ref: float = 1.0, amin: float = 1e-5, top_db: Optional[float] = 80.0) -> np.ndarray:
    """
    Convert an amplitude spectrogram to decibels.

    S_db = 20 * log10(max(amin, |S|) / ref), clipped like ``power_to_db``.
    """
    if amin <= 0:
        raise InvalidArgumentError(f"amin must be strictly positive, got {amin}")
    magnitude = np.abs(np.asarray(S))
    S_db = 20.0 * np.log10(np.maximum(amin, magnitude) / ref)
    return _clip_top_db(S_db, top_db)


def db_to_amplitude(S_db: np.ndarray, ref: float = 1.0) -> np.ndarray:
    """Inverse of ``amplitude_to_db`` (before clipping): ref * 10^(S_db / 20)."""
    return ref * np.power(10.0, np.asarray(S_db, dtype=np.float64) / 20.0)
