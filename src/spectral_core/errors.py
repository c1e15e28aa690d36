"""
Exception types raised by spectral_core.

All errors derive from ``SpectralError`` and from ``ValueError``, so code that
already guards calls with ``except ValueError`` keeps working.
"""


class SpectralError(Exception):
    """Base class for every error raised by this package."""


class InvalidArgumentError(SpectralError, ValueError):
    """A size, length or configuration value is out of range."""


class UnsupportedWindowTypeError(SpectralError, ValueError):
    """The requested window family is not known."""

    def __init__(self, window_type):
        self.window_type = window_type
        super().__init__(f"Unsupported window type: {window_type}")


class UnsupportedPadModeError(SpectralError, ValueError):
    """The requested boundary padding mode is not known."""

    def __init__(self, pad_mode):
        self.pad_mode = pad_mode
        super().__init__(f"Unsupported pad mode: {pad_mode}")
