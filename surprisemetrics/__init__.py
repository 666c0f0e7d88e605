"""Surprise metrics and jump detection for market microstructure trade data."""

__version__ = "0.1.0"

__all__ = ["calculator", "cli", "models", "polygon", "simd_ops"]