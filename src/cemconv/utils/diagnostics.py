"""
Diagnostic Sink
===============

Single responsibility: Collect non-fatal conversion warnings.

Importers report skipped content (unsupported scene nodes, extra root
geometry, unsupported morph methods) through a sink rather than writing
to the console directly. The sink keeps (severity, message) pairs for
inspection and forwards each one to a logger.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from cemconv.utils.logging import get_logger

WARNING = "warning"
INFO = "info"

_LEVELS = {
    WARNING: logging.WARNING,
    INFO: logging.INFO,
}


@dataclass
class DiagnosticSink:
    """
    Records diagnostics and mirrors them to a logger.

    Attributes:
        logger: Logger the records are forwarded to (None to only record)
        records: (severity, message) pairs in report order

    Example:
        >>> sink = DiagnosticSink(logger=None)
        >>> sink.warning("collada", "Lights are unsupported")
        >>> sink.warnings
        ['warning[collada]: Lights are unsupported']
    """

    logger: Optional[logging.Logger] = field(default_factory=lambda: get_logger('cemconv'))
    records: List[Tuple[str, str]] = field(default_factory=list)

    def report(self, severity: str, message: str) -> None:
        self.records.append((severity, message))

        if self.logger is not None:
            self.logger.log(_LEVELS.get(severity, logging.WARNING), message)

    def warning(self, source: str, message: str) -> None:
        """Report a skipped or downgraded construct from a given source format."""
        self.report(WARNING, f"warning[{source}]: {message}")

    def info(self, message: str) -> None:
        self.report(INFO, message)

    @property
    def warnings(self) -> List[str]:
        return [message for severity, message in self.records if severity == WARNING]
