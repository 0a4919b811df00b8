"""Utility functions and helpers.

Logging and the diagnostic sink shared by importers and the CLI.
"""

from .logging import setup_logger, get_logger
from .diagnostics import DiagnosticSink

__all__ = ["setup_logger", "get_logger", "DiagnosticSink"]
