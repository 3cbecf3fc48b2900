"""clipforge - staged AI video ad generation service."""

__version__ = "0.1.0"
