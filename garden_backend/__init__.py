"""Garden growth simulation service."""

__version__ = "0.1.0"
