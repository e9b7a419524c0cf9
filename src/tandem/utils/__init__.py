"""Shared utilities for tandem."""

from ._logging import LogFormatType, create_run_logger, get_null_logger

__all__ = ["LogFormatType", "create_run_logger", "get_null_logger"]
