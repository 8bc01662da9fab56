"""VisionTV - Filmix and HDRezka catalog client."""

__version__ = "0.1.0"
