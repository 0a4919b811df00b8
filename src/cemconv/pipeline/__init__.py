"""High-level conversion pipeline.

Contains configuration, importers, exporters and the stream orchestrator.
"""

from .config import ConversionConfig, Format, FORMAT_TOKENS
from .orchestrator import convert, render, run_conversion

__all__ = [
    'ConversionConfig',
    'Format',
    'FORMAT_TOKENS',
    'convert',
    'render',
    'run_conversion',
]
