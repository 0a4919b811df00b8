"""cemconv - Convert CEM runtime models to and from OBJ and COLLADA.

Split-indexed authoring meshes are deduplicated into the flat-indexed
CEM v2 model, and COLLADA morph targets become additional frames once
their topology has been proven identical to the base geometry.

Quick Start:
    >>> from cemconv.pipeline import ConversionConfig, run_conversion
    >>> from cemconv.utils.logging import setup_logger
    >>>
    >>> logger = setup_logger(verbose=True, log_level='INFO')
    >>> config = ConversionConfig(
    ...     output_format='cem',
    ...     input_format='dae',
    ...     input_path='flag.dae',
    ...     output_path='flag.cem',
    ... )
    >>> run_conversion(config)

Modules:
    core: Data model, axis transform, center, dedup, topology validation
    formats: CEM codec, OBJ and COLLADA readers and emitters
    pipeline: Configuration, importers, exporters, orchestration
    cli: Command-line interface
    utils: Logging and diagnostics
"""

__version__ = "0.2.0"
__license__ = "MIT"

# Expose key classes and functions at package level
from .core.exceptions import (
    CemConvError,
    TopologyMismatchError,
    NoRootGeometryError,
    DocumentError,
    ParseError,
    HeaderError,
    UnsupportedVersionError,
    UnsupportedConversionError,
    FrameIndexError,
    StreamOpenError,
    ValidationError,
)

from .utils.logging import setup_logger, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Exceptions
    "CemConvError",
    "TopologyMismatchError",
    "NoRootGeometryError",
    "DocumentError",
    "ParseError",
    "HeaderError",
    "UnsupportedVersionError",
    "UnsupportedConversionError",
    "FrameIndexError",
    "StreamOpenError",
    "ValidationError",
    # Logging
    "setup_logger",
    "get_logger",
]
