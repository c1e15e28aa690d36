"""
Command-line feature extraction.

Usage:
    spectral-core mfcc audio/*.wav --config features.yaml --output-dir out/
    python -m spectral_core mel clip.wav --sample-rate 16000 --feature-size 64
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import librosa
import numpy as np
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from tqdm import tqdm

from .errors import SpectralError
from .features import FEATURE_EXTRACTORS, FeatureConfig, extract, load_config
from .fft import available_backends
from .utils.logging import setup_logging
from .window import WINDOWS

console = Console()

# Used when neither --config nor the command line give a value
DEFAULTS = {
    'sample_rate': 22050,
    'n_fft': 2048,
    'hop_length': 512,
}
DEFAULT_FEATURE_SIZE = {'mel': 128, 'mfcc': 13}

_OVERRIDES = ('sample_rate', 'n_fft', 'hop_length', 'feature_size', 'n_mels', 'window', 'win_length')


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog='spectral-core',
        description='Extract mel spectrogram or MFCC features from audio files',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('feature', choices=sorted(FEATURE_EXTRACTORS),
                        help='Feature type')
    parser.add_argument('inputs', nargs='+', type=Path,
                        help='Audio files')
    parser.add_argument('--config', type=Path, default=None,
                        help='YAML feature configuration')
    parser.add_argument('--sample-rate', dest='sample_rate', type=int, default=None,
                        help='Target sampling rate (Hz); audio is resampled to it')
    parser.add_argument('--n-fft', dest='n_fft', type=int, default=None,
                        help='FFT window size')
    parser.add_argument('--hop-length', dest='hop_length', type=int, default=None,
                        help='STFT hop length')
    parser.add_argument('--win-length', dest='win_length', type=int, default=None,
                        help='Analysis window length (default: n_fft)')
    parser.add_argument('--feature-size', dest='feature_size', type=int, default=None,
                        help='Mel bands (mel) or coefficients (mfcc)')
    parser.add_argument('--n-mels', dest='n_mels', type=int, default=None,
                        help='Mel bands used before the DCT (mfcc only)')
    parser.add_argument('--window', type=str, default=None, choices=sorted(WINDOWS),
                        help='STFT window function')
    parser.add_argument('--backend', type=str, default=None, choices=available_backends(),
                        help='FFT backend')
    parser.add_argument('--output-dir', dest='output_dir', type=Path, default=Path('.'),
                        help='Directory for the .npy feature files')
    parser.add_argument('--log-file', dest='log_file', type=str, default=None,
                        help='Write a detailed log to this file')
    parser.add_argument('--verbose', action='store_true',
                        help='Show debug logging on the console')
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> FeatureConfig:
    """Merge defaults, the YAML configuration and command-line overrides."""
    overrides = {name: getattr(args, name) for name in _OVERRIDES if getattr(args, name) is not None}

    if args.config is not None:
        config = load_config(
            args.config,
            feature=args.feature,
            **{**DEFAULTS, 'feature_size': DEFAULT_FEATURE_SIZE[args.feature]}
        )
        return config.with_overrides(**overrides) if overrides else config

    values = {**DEFAULTS, 'feature_size': DEFAULT_FEATURE_SIZE[args.feature]}
    values.update(overrides)
    return FeatureConfig(**values)


def process_file(path: Path, feature: str, config: FeatureConfig, output_dir: Path, backend=None) -> Tuple[Path, Tuple[int, ...]]:
    """Load one audio file, extract its features and save them as .npy."""
    y, _ = librosa.load(path, sr=config.sample_rate, mono=True)
    features = extract(feature, y.astype(np.float64), config, backend=backend)

    output_path = output_dir / f"{path.stem}_{feature}.npy"
    np.save(output_path, features)
    return output_path, features.shape


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logger = setup_logging(
        log_file=args.log_file,
        level=logging.DEBUG if (args.verbose or args.log_file) else logging.INFO,
        name='spectral_core',
        console_level=logging.DEBUG if args.verbose else logging.WARNING
    )

    try:
        config = build_config(args)
    except (SpectralError, OSError) as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        return 2

    logger.info("Extracting %s features with %s", args.feature, config)
    args.output_dir.mkdir(parents=True, exist_ok=True)

    table = Table(title=f"{args.feature.upper()} features", box=box.ROUNDED)
    table.add_column("File", style="cyan")
    table.add_column("Shape", justify="right")
    table.add_column("Output", style="green")

    failures = 0
    for path in tqdm(args.inputs, desc="Extracting features", disable=len(args.inputs) < 2):
        try:
            output_path, shape = process_file(path, args.feature, config, args.output_dir, backend=args.backend)
        except Exception as e:
            # Unreadable audio surfaces as loader-specific errors; keep going
            logger.error("%s: %s: %s", path, type(e).__name__, e)
            table.add_row(str(path), "-", f"[red]{escape(str(e))}[/red]")
            failures += 1
            continue
        logger.info("%s -> %s %s", path, output_path, shape)
        table.add_row(str(path), f"{shape[0]} x {shape[1]}", str(output_path))

    console.print(table)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
