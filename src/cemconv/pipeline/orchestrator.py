"""
Conversion Orchestrator
=======================

Single responsibility: Route one conversion from an input stream to an
output stream.

The whole input is read into memory and the whole result is rendered
before anything is written, so a failed conversion never leaves partial
output behind.
"""

import sys
from contextlib import ExitStack
from datetime import datetime
from typing import BinaryIO, Optional

from cemconv.core.exceptions import StreamOpenError, UnsupportedConversionError, UnsupportedVersionError
from cemconv.formats import cem
from cemconv.formats.collada import DEFAULT_TIMESTAMP, parse_document
from cemconv.formats.obj import parse_obj
from cemconv.pipeline.config import CEM, CEM_V2, COLLADA, OBJ, ConversionConfig, Format
from cemconv.pipeline.exporters import model_to_collada, model_to_obj
from cemconv.pipeline.importers import collada_to_model, obj_to_model
from cemconv.utils.diagnostics import DiagnosticSink
from cemconv.utils.logging import get_logger

logger = get_logger(__name__)


def render(
    source: BinaryIO,
    input_format: Format,
    output_format: Format,
    frame_index: int = 0,
    timestamp: str = DEFAULT_TIMESTAMP,
    sink: Optional[DiagnosticSink] = None
) -> bytes:
    """
    Convert the contents of a stream and return the encoded result.

    Supported conversions:
    - obj -> cem2
    - collada -> cem2
    - cem2 -> cem2 (rewrite)
    - cem2 -> obj (one frame, chosen by frame_index)
    - cem2 -> collada (all frames)

    Args:
        source: Binary input stream
        input_format: Format of the input
        output_format: Format to produce
        frame_index: Frame to extract into single-frame formats
        timestamp: Creation time for formats that record one
        sink: Receives non-fatal diagnostics

    Returns:
        Encoded output

    Raises:
        UnsupportedConversionError: If the format pair has no converter
        UnsupportedVersionError: If a CEM version other than 2.0 is involved
        CemConvError: Any import or export failure
    """
    sink = sink if sink is not None else DiagnosticSink()
    pair = (input_format.kind, output_format.kind)

    if output_format.kind == CEM and output_format.version != CEM_V2:
        raise UnsupportedVersionError(output_format.version, action="write")

    if pair == (OBJ, CEM):
        text = source.read().decode("utf-8", errors="replace")
        return cem.encode(obj_to_model(parse_obj(text), sink))

    if pair == (COLLADA, CEM):
        return cem.encode(collada_to_model(parse_document(source.read()), sink))

    if input_format.kind == CEM:
        model = cem.read(source)

        if output_format.kind == CEM:
            return cem.encode(model)
        if output_format.kind == OBJ:
            return model_to_obj(model, frame_index).encode("utf-8")
        if output_format.kind == COLLADA:
            return model_to_collada(model, timestamp).encode("utf-8")

    raise UnsupportedConversionError(str(input_format), str(output_format))


def convert(
    source: BinaryIO,
    destination: BinaryIO,
    input_format: Format,
    output_format: Format,
    frame_index: int = 0,
    timestamp: str = DEFAULT_TIMESTAMP,
    sink: Optional[DiagnosticSink] = None
) -> None:
    """Convert between two already-open streams. Nothing is written on failure."""
    data = render(source, input_format, output_format, frame_index, timestamp, sink)
    destination.write(data)
    destination.flush()


def run_conversion(
    config: ConversionConfig,
    stdin: Optional[BinaryIO] = None,
    stdout: Optional[BinaryIO] = None,
    sink: Optional[DiagnosticSink] = None
) -> None:
    """
    Execute one conversion described by a config.

    Paths left unset in the config fall back to standard input and output.
    The output file is only created once the conversion has succeeded, and
    every opened file is closed on all exit paths.

    Args:
        config: Conversion settings
        stdin: Stream used when config.input_path is None
        stdout: Stream used when config.output_path is None
        sink: Receives non-fatal diagnostics

    Raises:
        StreamOpenError: If the input or output path cannot be opened
        CemConvError: Any conversion failure
    """
    timestamp = config.timestamp or datetime.now().strftime("%Y-%m-%dT%H:%M:%S")

    logger.debug(f"Converting {config.input_format} -> {config.output_format}")

    with ExitStack() as stack:
        if config.input_path is not None:
            try:
                source = stack.enter_context(open(config.input_path, "rb"))
            except OSError as e:
                raise StreamOpenError(config.input_path, e, "open the input") from e
        else:
            source = stdin if stdin is not None else sys.stdin.buffer

        data = render(
            source,
            config.input_format,
            config.output_format,
            config.frame_index,
            timestamp,
            sink,
        )

        if config.output_path is not None:
            try:
                destination = stack.enter_context(open(config.output_path, "wb"))
            except OSError as e:
                raise StreamOpenError(config.output_path, e, "create the output") from e
        else:
            destination = stdout if stdout is not None else sys.stdout.buffer

        destination.write(data)
        destination.flush()

    logger.info(f"Wrote {len(data)} bytes of {config.output_format}")
