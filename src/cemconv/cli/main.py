"""
Command-Line Interface
======================

Single responsibility: Expose conversions as the `cemconv` command.
"""

import sys
from pathlib import Path

import click

from cemconv import __version__
from cemconv.core.exceptions import CemConvError, StreamOpenError, ValidationError
from cemconv.pipeline import FORMAT_TOKENS, ConversionConfig, Format, run_conversion
from cemconv.utils.logging import get_logger, setup_logger

logger = get_logger(__name__)


def _format_option(ctx, param, value):
    """Turn a format token into a Format, as a usage error when unknown."""
    if value is None:
        return None
    try:
        return Format.parse(value)
    except ValidationError:
        raise click.BadParameter(
            f"Unrecognized format {value!r} (choose from {', '.join(FORMAT_TOKENS)})"
        ) from None


@click.command()
@click.option(
    '-f', '--format', 'output_format',
    required=True,
    callback=_format_option,
    help='Format to use as the output'
)
@click.option(
    '-g', '--iformat', 'input_format',
    default=None,
    callback=_format_option,
    help='Format to use for the input (default: cem)'
)
@click.option(
    '-i', '--input', 'input_path',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='Input file to convert (default: stdin)'
)
@click.option(
    '-n', '--frame', 'frame_index',
    type=click.IntRange(min=0),
    default=0,
    help='Frame number in the CEM file to extract (default: 0)'
)
@click.argument(
    'output',
    type=click.Path(dir_okay=False, path_type=Path),
    required=False
)
@click.option(
    '-q', '--quiet',
    is_flag=True,
    help='Suppress warnings'
)
@click.option(
    '--log-file',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='Also write a full DEBUG log to this file'
)
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    default='WARNING',
    help='Logging level (default: WARNING)'
)
@click.version_option(version=__version__, prog_name='cemconv')
def cli(output_format, input_format, input_path, frame_index, output, quiet, log_file, log_level):
    """
    Convert CEM models to and from OBJ and COLLADA.

    Reads from stdin and writes to stdout unless paths are given.

    \b
    Formats:
        cem, cem2, ssmf   CEM v2 runtime model
        cem1.3            CEM v1.3 (recognized, not convertible)
        obj               Wavefront OBJ (single frame)
        dae, collada      COLLADA (frames become morph targets)

    \b
    Examples:
        # OBJ to CEM
        cemconv -g obj -f cem -i tank.obj tank.cem

        # Extract the third frame of a CEM file as OBJ
        cemconv -f obj -n 2 -i flag.cem flag.obj

        # CEM with morph frames to COLLADA
        cemconv -f dae < flag.cem > flag.dae
    """
    try:
        config = ConversionConfig(
            output_format=output_format,
            input_format=input_format or Format.parse('cem'),
            input_path=input_path,
            output_path=output,
            frame_index=frame_index,
            verbose=not quiet,
            log_file=log_file,
            log_level=log_level,
        )
        try:
            setup_logger(
                name='cemconv',
                verbose=config.verbose,
                log_file=config.log_file,
                log_level=config.log_level,
            )
        except OSError as e:
            raise StreamOpenError(config.log_file, e, "create the log") from e
        run_conversion(config)
    except KeyboardInterrupt:
        click.secho("error: interrupted by user", fg='yellow', err=True)
        sys.exit(130)
    except CemConvError as e:
        click.secho(f"error: conversion failed: {e}", fg='red', err=True)
        if log_level.upper() == 'DEBUG':
            import traceback
            traceback.print_exc()
        sys.exit(1)


def main():
    """Entry point for console_scripts."""
    cli()


if __name__ == '__main__':
    main()
