"""
End-to-end tests for the mel spectrogram and MFCC extractors.

librosa is the reference implementation for the regression fixtures.
"""

import dataclasses

import numpy as np
import pytest
import librosa

from spectral_core import (
    FeatureConfig,
    load_config,
    power_spectrum,
    extract_mel,
    extract_mfcc,
    extract,
    stft,
    InvalidArgumentError,
)


@pytest.fixture(scope='module')
def signal():
    """Two seconds of a chirp plus noise at 22050 Hz."""
    sr = 22050
    t = np.arange(2 * sr) / sr
    rng = np.random.default_rng(42)
    return np.sin(2 * np.pi * (220 + 400 * t) * t) + 0.1 * rng.standard_normal(len(t))


class TestFeatureConfig:
    """Test suite for the configuration value object."""

    def test_nyquist_default(self):
        config = FeatureConfig(sample_rate=16000, n_fft=512, hop_length=160, feature_size=40)
        assert config.f_max == 8000.0
        assert config.win_length == 512
        assert config.n_mels == 128

    def test_explicit_f_max(self):
        config = FeatureConfig(sample_rate=16000, n_fft=512, hop_length=160, feature_size=40, f_max=4000.0)
        assert config.f_max == 4000.0

    def test_overriding_sample_rate_recomputes_nyquist(self):
        config = FeatureConfig(sample_rate=16000, n_fft=512, hop_length=160, feature_size=40)
        assert config.with_overrides(sample_rate=22050).f_max == 11025.0
        assert config.with_overrides(sample_rate=22050, f_max=5000.0).f_max == 5000.0

    def test_overriding_other_fields_keeps_f_max(self):
        config = FeatureConfig(sample_rate=16000, n_fft=512, hop_length=160, feature_size=40, f_max=4000.0)
        updated = config.with_overrides(hop_length=128)
        assert updated.f_max == 4000.0
        assert updated.hop_length == 128
        assert config.hop_length == 160

    def test_overriding_n_fft_resets_win_length(self):
        config = FeatureConfig(sample_rate=16000, n_fft=512, hop_length=160, feature_size=40)
        assert config.with_overrides(n_fft=1024).win_length == 1024

    def test_frozen(self):
        config = FeatureConfig(sample_rate=16000, n_fft=512, hop_length=160, feature_size=40)
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.sample_rate = 8000

    @pytest.mark.parametrize('kwargs', [
        {'sample_rate': 0},
        {'n_fft': -1},
        {'hop_length': 0},
        {'feature_size': 0},
        {'f_min': 9000.0},
        {'win_length': 1024},
    ])
    def test_invalid(self, kwargs):
        values = dict(sample_rate=16000, n_fft=512, hop_length=160, feature_size=40)
        values.update(kwargs)
        with pytest.raises(InvalidArgumentError):
            FeatureConfig(**values)

    def test_from_dict_camel_case(self):
        config = FeatureConfig.from_dict(
            {'sampleRate': 16000, 'nFft': 512, 'hopLength': 128, 'featureSize': 13, 'comment': 'ignored'}
        )
        assert (config.sample_rate, config.n_fft, config.hop_length, config.feature_size) == (16000, 512, 128, 13)
        assert config.f_max == 8000.0

    def test_from_dict_mfcc_size_key(self):
        config = FeatureConfig.from_dict({'sampleRate': 16000, 'nFft': 512, 'hopLength': 128, 'nMfcc': 13})
        assert config.feature_size == 13
        assert config.n_mels == 128

    def test_from_dict_mel_size_key(self):
        mapping = {'sampleRate': 16000, 'nFft': 512, 'hopLength': 128, 'nMels': 40, 'nMfcc': 13}
        assert FeatureConfig.from_dict(mapping, feature='mel').feature_size == 40
        assert FeatureConfig.from_dict(mapping, feature='mfcc').feature_size == 13
        assert FeatureConfig.from_dict(mapping, feature='mfcc').n_mels == 40

    def test_from_dict_explicit_feature_size_wins(self):
        config = FeatureConfig.from_dict(
            {'sample_rate': 16000, 'n_fft': 512, 'hop_length': 128, 'feature_size': 20, 'n_mfcc': 13}
        )
        assert config.feature_size == 20

    def test_from_dict_unknown_feature(self):
        with pytest.raises(InvalidArgumentError):
            FeatureConfig.from_dict({'sampleRate': 16000, 'nFft': 512, 'hopLength': 128, 'nMfcc': 13},
                                    feature='chroma')

    def test_from_dict_missing_keys(self):
        with pytest.raises(InvalidArgumentError):
            FeatureConfig.from_dict({'sampleRate': 16000})

    def test_load_config(self, tmp_path):
        path = tmp_path / 'features.yaml'
        path.write_text(
            "sampleRate: 16000\n"
            "nFft: 1024\n"
            "hopLength: 256\n"
            "nMels: 64\n"
            "nMfcc: 20\n"
        )

        mel_config = load_config(path, feature='mel')
        assert mel_config.feature_size == 64

        mfcc_config = load_config(path, feature='mfcc')
        assert mfcc_config.feature_size == 20
        assert mfcc_config.n_mels == 64
        assert mfcc_config.f_max == 8000.0

    def test_load_config_features_section(self, tmp_path):
        path = tmp_path / 'experiment.yaml'
        path.write_text(
            "seed: 0\n"
            "features:\n"
            "  sample_rate: 22050\n"
            "  n_fft: 2048\n"
            "  hop_length: 512\n"
            "  feature_size: 13\n"
            "  window: hamming\n"
        )
        config = load_config(path)
        assert config.window == 'hamming'
        assert config.feature_size == 13

    @pytest.mark.parametrize('text', [
        "features:\n",
        "features: 13\n",
        "features:\n  - sample_rate\n",
        "- 1\n- 2\n",
        "sampleRate: [16000\n",
    ])
    def test_load_config_malformed(self, tmp_path, text):
        path = tmp_path / 'bad.yaml'
        path.write_text(text)
        with pytest.raises(InvalidArgumentError):
            load_config(path, feature='mfcc')


class TestMelFeature:
    """Test suite for the mel spectrogram extractor."""

    def test_power_spectrum(self):
        D = np.array([[3 + 4j, 1j], [0, -2]])
        np.testing.assert_allclose(power_spectrum(D), [[25.0, 1.0], [0.0, 4.0]])

    def test_matches_librosa(self, signal):
        config = FeatureConfig(sample_rate=22050, n_fft=2048, hop_length=512, feature_size=64)

        mel_ours = extract_mel(signal, config)
        mel_librosa = librosa.feature.melspectrogram(
            y=signal, sr=22050, n_fft=2048, hop_length=512, n_mels=64, pad_mode='constant'
        )

        rel_error = np.abs(mel_ours - mel_librosa).max() / mel_librosa.max()
        print(f"\n[Mel Spectrogram]")
        print(f"  Shape: {mel_ours.shape}")
        print(f"  Max relative error: {rel_error:.2e}")

        assert mel_ours.shape == mel_librosa.shape
        assert rel_error < 1e-5

    def test_frame_count_follows_stft(self, signal):
        config = FeatureConfig(sample_rate=22050, n_fft=1024, hop_length=300, feature_size=40)
        mel_spec = extract_mel(signal, config)
        S = stft(signal, n_fft=1024, hop_length=300)

        assert mel_spec.shape == (40, S.shape[1])
        assert np.all(mel_spec >= 0)

    def test_backends_agree(self, signal):
        config = FeatureConfig(sample_rate=22050, n_fft=1024, hop_length=256, feature_size=40)
        np.testing.assert_allclose(extract_mel(signal, config),
                                   extract_mel(signal, config, backend='numpy'), rtol=1e-8, atol=1e-8)


class TestMFCCFeature:
    """Test suite for the MFCC extractor."""

    def test_mfcc_matches_librosa(self, signal):
        """MFCC matches librosa within 1e-4."""
        config = FeatureConfig(sample_rate=22050, n_fft=2048, hop_length=512, feature_size=13)

        mfccs_ours = extract_mfcc(signal, config)
        mfccs_librosa = librosa.feature.mfcc(
            y=signal, sr=22050, n_mfcc=13, n_fft=2048, hop_length=512, pad_mode='constant'
        )

        error = np.abs(mfccs_ours - mfccs_librosa)
        print(f"\n[MFCC]")
        print(f"  Output shape: {mfccs_ours.shape}")
        print(f"  Max error: {error.max():.2e}")

        assert mfccs_ours.shape == (13, 87)
        assert error.max() < 1e-4

    def test_mfcc_16k(self):
        sr = 16000
        y = np.random.default_rng(7).standard_normal(sr)
        config = FeatureConfig(sample_rate=sr, n_fft=512, hop_length=160, feature_size=20, n_mels=40)

        mfccs_ours = extract_mfcc(y, config)
        mfccs_librosa = librosa.feature.mfcc(
            y=y, sr=sr, n_mfcc=20, n_fft=512, hop_length=160, n_mels=40, pad_mode='constant'
        )

        assert np.abs(mfccs_ours - mfccs_librosa).max() < 1e-4

    def test_mfcc_uses_128_mel_bands_by_default(self, signal):
        """feature_size only truncates; the mel stage keeps 128 bands."""
        config = FeatureConfig(sample_rate=22050, n_fft=2048, hop_length=512, feature_size=13)
        full = extract_mfcc(signal, config.with_overrides(feature_size=128))
        np.testing.assert_allclose(extract_mfcc(signal, config), full[:13])

    def test_feature_size_exceeds_mel_bands(self, signal):
        config = FeatureConfig(sample_rate=22050, n_fft=2048, hop_length=512, feature_size=41, n_mels=40)
        with pytest.raises(InvalidArgumentError):
            extract_mfcc(signal, config)

    def test_upstream_errors_propagate(self):
        config = FeatureConfig(sample_rate=16000, n_fft=512, hop_length=160, feature_size=13)
        with pytest.raises(InvalidArgumentError):
            extract_mfcc(np.array([]), config)


class TestExtract:
    """Test suite for extractor dispatch."""

    def test_dispatch(self, signal):
        config = FeatureConfig(sample_rate=22050, n_fft=1024, hop_length=512, feature_size=20)
        np.testing.assert_allclose(extract('mel', signal, config), extract_mel(signal, config))
        np.testing.assert_allclose(extract('mfcc', signal, config), extract_mfcc(signal, config))

    def test_unknown_kind(self, signal):
        config = FeatureConfig(sample_rate=22050, n_fft=1024, hop_length=512, feature_size=20)
        with pytest.raises(InvalidArgumentError):
            extract('chroma', signal, config)
