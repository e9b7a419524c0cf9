"""Run several shell commands side by side with prefixed, colored output."""

__version__ = "0.1.0"
