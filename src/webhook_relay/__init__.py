"""In-process message relay with webhook fan-out."""

__version__ = "1.0.0"
