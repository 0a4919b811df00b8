"""
Conversion Configuration
========================

Single responsibility: Describe one conversion call, with validation.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from cemconv.core.exceptions import ValidationError

CEM = "cem"
OBJ = "obj"
COLLADA = "collada"

CEM_V2 = (2, 0)


@dataclass(frozen=True)
class Format:
    """
    A model format, with a version for the runtime model.

    Example:
        >>> Format.parse("cem1.3")
        Format(kind='cem', version=(1, 3))
        >>> Format.parse("obj")
        Format(kind='obj', version=None)
    """

    kind: str
    version: Optional[Tuple[int, int]] = None

    @classmethod
    def parse(cls, token: str) -> "Format":
        """
        Map a command-line format token to a Format.

        Args:
            token: One of the keys of FORMAT_TOKENS

        Returns:
            Matching Format

        Raises:
            ValidationError: If the token is not recognized
        """
        try:
            return FORMAT_TOKENS[token]
        except KeyError:
            raise ValidationError(
                f"Unrecognized format {token!r}\n"
                f"Supported: {', '.join(FORMAT_TOKENS)}"
            ) from None

    def __str__(self) -> str:
        if self.version is None:
            return self.kind
        return f"{self.kind}{self.version[0]}.{self.version[1]}"


FORMAT_TOKENS = {
    "cem1.3": Format(CEM, (1, 3)),
    "cem2": Format(CEM, CEM_V2),
    "cem": Format(CEM, CEM_V2),
    "ssmf": Format(CEM, CEM_V2),
    "obj": Format(OBJ),
    "dae": Format(COLLADA),
    "collada": Format(COLLADA),
}

DEFAULT_INPUT_FORMAT = FORMAT_TOKENS["cem"]


@dataclass
class ConversionConfig:
    """
    Configuration for one conversion.

    Attributes:
        output_format: Target format (Format or token)
        input_format: Source format (Format or token, default: CEM v2)
        input_path: Source file, None for standard input
        output_path: Target file, None for standard output
        frame_index: Frame to extract when the target holds a single frame
        verbose: Enable console logging
        log_file: Optional file that receives the full DEBUG log
        log_level: Console logging level (DEBUG, INFO, WARNING, ERROR)
        timestamp: Creation time written into COLLADA output (default: now)

    Example:
        >>> config = ConversionConfig(output_format="obj", input_path=Path("tank.cem"))
        >>> config.input_format
        Format(kind='cem', version=(2, 0))
    """

    output_format: Format
    input_format: Format = field(default=DEFAULT_INPUT_FORMAT)
    input_path: Optional[Path] = None
    output_path: Optional[Path] = None
    frame_index: int = 0

    # Logging
    verbose: bool = True
    log_file: Optional[Path] = None
    log_level: str = "WARNING"

    timestamp: Optional[str] = None

    def __post_init__(self):
        """
        Validate and normalize configuration after initialization.

        Raises:
            ValidationError: If any setting is invalid
        """
        if isinstance(self.output_format, str):
            self.output_format = Format.parse(self.output_format)
        if isinstance(self.input_format, str):
            self.input_format = Format.parse(self.input_format)

        if self.input_path is not None:
            self.input_path = Path(self.input_path)
        if self.output_path is not None:
            self.output_path = Path(self.output_path)
        if self.log_file is not None:
            self.log_file = Path(self.log_file)

        if self.frame_index < 0:
            raise ValidationError(f"frame_index must be >= 0, got {self.frame_index}")

        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR'}
        if self.log_level.upper() not in valid_levels:
            raise ValidationError(
                f"Invalid log_level: {self.log_level}\n"
                f"Must be one of: {valid_levels}"
            )
        self.log_level = self.log_level.upper()
