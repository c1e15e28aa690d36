"""
Tests for the command-line front end.
"""

import logging

import numpy as np
import pytest
import soundfile as sf

from spectral_core.cli import main, parse_args, build_config


@pytest.fixture
def wav_file(tmp_path):
    sr = 16000
    t = np.arange(sr) / sr
    path = tmp_path / 'tone.wav'
    sf.write(path, 0.5 * np.sin(2 * np.pi * 440 * t), sr)
    return path


class TestCLI:
    """Test suite for spectral-core."""

    def test_mfcc(self, wav_file, tmp_path):
        out_dir = tmp_path / 'out'
        exit_code = main([
            'mfcc', str(wav_file),
            '--sample-rate', '16000',
            '--n-fft', '512',
            '--hop-length', '160',
            '--feature-size', '13',
            '--output-dir', str(out_dir),
        ])

        assert exit_code == 0
        features = np.load(out_dir / 'tone_mfcc.npy')
        # 16000 // 160 + 1 frames
        assert features.shape == (13, 101)

    def test_mel_with_yaml_config(self, wav_file, tmp_path):
        config_path = tmp_path / 'features.yaml'
        config_path.write_text("sampleRate: 16000\nnFft: 1024\nhopLength: 256\nnMels: 40\nnMfcc: 13\n")

        exit_code = main([
            'mel', str(wav_file),
            '--config', str(config_path),
            '--backend', 'numpy',
            '--output-dir', str(tmp_path),
        ])

        assert exit_code == 0
        assert np.load(tmp_path / 'tone_mel.npy').shape == (40, 63)

    def test_command_line_overrides_config(self, tmp_path):
        config_path = tmp_path / 'features.yaml'
        config_path.write_text("sampleRate: 16000\nnFft: 1024\nhopLength: 256\nnMfcc: 13\n")

        args = parse_args(['mfcc', 'x.wav', '--config', str(config_path), '--hop-length', '128'])
        config = build_config(args)

        assert config.hop_length == 128
        assert config.n_fft == 1024
        assert config.feature_size == 13
        assert config.f_max == 8000.0

    def test_defaults(self):
        config = build_config(parse_args(['mel', 'x.wav']))
        assert (config.sample_rate, config.n_fft, config.hop_length, config.feature_size) == (22050, 2048, 512, 128)

    def test_invalid_configuration(self, wav_file, tmp_path):
        exit_code = main(['mfcc', str(wav_file), '--feature-size', '200', '--n-mels', '128',
                          '--n-fft', '0', '--output-dir', str(tmp_path)])
        assert exit_code == 2

    def test_malformed_config_file(self, wav_file, tmp_path):
        config_path = tmp_path / 'features.yaml'
        config_path.write_text("features:\n")
        assert main(['mfcc', str(wav_file), '--config', str(config_path),
                     '--output-dir', str(tmp_path)]) == 2

    def test_undecodable_file_does_not_stop_batch(self, wav_file, tmp_path):
        bad_file = tmp_path / 'bad.wav'
        bad_file.write_text("this is not audio")
        out_dir = tmp_path / 'out'

        exit_code = main(['mel', str(bad_file), str(wav_file),
                          '--sample-rate', '16000', '--output-dir', str(out_dir)])

        assert exit_code == 1
        assert not (out_dir / 'bad_mel.npy').exists()
        assert (out_dir / 'tone_mel.npy').exists()

    def test_missing_file_is_reported(self, tmp_path):
        exit_code = main(['mel', str(tmp_path / 'missing.wav'), '--output-dir', str(tmp_path)])
        assert exit_code == 1

    def test_repeated_runs_close_log_file(self, wav_file, tmp_path):
        log_file = tmp_path / 'run.log'
        args = ['mfcc', str(wav_file), '--sample-rate', '16000', '--n-fft', '512',
                '--output-dir', str(tmp_path), '--log-file', str(log_file)]

        assert main(args) == 0
        first_handler = logging.getLogger('spectral_core').handlers[-1]
        assert main(args) == 0

        assert isinstance(first_handler, logging.FileHandler)
        assert first_handler.stream is None
        assert first_handler not in logging.getLogger('spectral_core').handlers

    def test_extraction_failure_is_reported(self, wav_file, tmp_path):
        exit_code = main(['mfcc', str(wav_file), '--feature-size', '50', '--n-mels', '40',
                          '--output-dir', str(tmp_path)])
        assert exit_code == 1
        assert not (tmp_path / 'tone_mfcc.npy').exists()
