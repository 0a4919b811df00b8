"""Custom exceptions for model conversion operations.

This module defines domain-specific exceptions that provide clear,
actionable error messages for every fatal conversion failure. Each
conversion is all-or-nothing: raising any of these aborts the call
before any output is written.
"""

from typing import Optional


class CemConvError(Exception):
    """Base exception for all conversion errors.

    All custom exceptions in the cemconv package inherit from this base class.
    This allows catching all conversion-related errors with a single except clause.

    Example:
        >>> try:
        ...     convert(source, sink, Format.parse('obj'), Format.parse('cem'))
        ... except CemConvError as e:
        ...     print(f"Conversion failed: {e}")
    """
    pass


class TopologyMismatchError(CemConvError):
    """Raised when a morph frame does not share the base object's topology.

    Frames of one model share a single triangle buffer, so every candidate
    frame must reference exactly the same split indices in the same face
    order as the base object. Only the attribute values may differ.

    Attributes:
        frame_index: Zero-based position of the offending frame in the
            morph target sequence

    Example:
        >>> raise TopologyMismatchError(1)
        TopologyMismatchError: index 1 in the morph target sequence uses
        different geometry
    """

    def __init__(self, frame_index: int):
        """Initialize topology mismatch error.

        Args:
            frame_index: Position of the failing candidate in the linkage sequence
        """
        self.frame_index = frame_index

        super().__init__(
            f"index {frame_index} in the morph target sequence uses different geometry"
        )


class NoRootGeometryError(CemConvError):
    """Raised when a source document instances no geometry at its root.

    Example:
        >>> if not root_geometry:
        ...     raise NoRootGeometryError("visual scene 'Scene' instances no geometry")
    """
    pass


class DocumentError(CemConvError):
    """Raised when a source document is structurally incomplete.

    Common causes:
    - Missing <scene> or <instance_visual_scene>
    - A referenced visual scene or geometry that does not exist
    - Malformed numeric arrays
    """
    pass


class ParseError(CemConvError):
    """Raised when split-indexed source text has a syntax error.

    Attributes:
        line_number: One-based line number of the offending line
        message: Description of the problem
        format_name: Name of the grammar being parsed
    """

    def __init__(self, line_number: int, message: str, format_name: str = "OBJ"):
        """Initialize parse error.

        Args:
            line_number: One-based line of the failure
            message: Description of the problem
            format_name: Grammar name used in the diagnostic
        """
        self.line_number = line_number
        self.message = message
        self.format_name = format_name

        super().__init__(f"Error in {format_name} file on line {line_number}: {message}")


class HeaderError(CemConvError):
    """Raised when a runtime model header is truncated or not recognized."""
    pass


class UnsupportedVersionError(CemConvError):
    """Raised when a runtime model header names a version we cannot read or write.

    Conversion aborts rather than attempting a lossy downgrade.

    Attributes:
        version: (major, minor) tuple from the header
    """

    def __init__(self, version: tuple, action: str = "read"):
        self.version = version

        major, minor = version
        super().__init__(f"Cannot {action} CEM v{major}.{minor} files yet")


class UnsupportedConversionError(CemConvError):
    """Raised when no converter exists for an input/output format pair.

    Example:
        >>> raise UnsupportedConversionError('obj', 'collada')
        UnsupportedConversionError: Conversion from obj to collada is not supported
    """

    def __init__(self, source: str, target: str):
        self.source = source
        self.target = target

        super().__init__(f"Conversion from {source} to {target} is not supported")


class FrameIndexError(CemConvError):
    """Raised when extracting a frame the model does not have."""

    def __init__(self, frame_index: int, frame_count: int):
        self.frame_index = frame_index
        self.frame_count = frame_count

        super().__init__(
            f"Tried to extract frame index {frame_index} from a CEM file "
            f"that only has {frame_count} frames"
        )


class StreamOpenError(CemConvError):
    """Raised when an input or output path cannot be opened.

    Common causes:
    - File not found
    - Permission denied
    - Parent directory missing

    Attributes:
        path: Path that failed to open
        cause: Underlying OS error
    """

    def __init__(self, path, cause: Optional[BaseException] = None, mode: str = "open the input"):
        self.path = path
        self.cause = cause

        msg = f"failed to {mode} file at {path}"
        if cause is not None:
            msg += f" ({cause})"

        super().__init__(msg)


class ValidationError(CemConvError):
    """Raised when configuration validation fails.

    Used for general input validation failures where a more specific
    exception type doesn't exist.

    Example:
        >>> if frame_index < 0:
        ...     raise ValidationError(f"frame_index must be >= 0, got {frame_index}")
    """
    pass
