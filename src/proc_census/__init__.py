"""Process state census: counts processes per scheduler state."""

__version__ = "0.1.0"
