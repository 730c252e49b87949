"""File helpers shared by model loading and configuration.

Provides:
- SHA256 checksums ("sha256:<hex>") for model content identity
- JSON loading with readable pydantic validation errors
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from dmn_engine.exceptions import InvalidConfigurationError

__all__ = [
    "compute_checksum",
    "compute_file_checksum",
    "require_file_exists",
    "load_validated_json",
    "format_validation_errors",
]

ModelT = TypeVar("ModelT", bound=BaseModel)


def compute_checksum(data: bytes) -> str:
    """Compute SHA256 checksum of raw bytes.

    Returns:
        str: Checksum in format "sha256:<hex_digest>".
    """
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


def compute_file_checksum(path: Path) -> str:
    """Compute SHA256 checksum of a file's content.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        OSError: If the file cannot be read.
    """
    return compute_checksum(path.read_bytes())


def require_file_exists(path: Path, file_type: str = "file") -> None:
    """Raise FileNotFoundError with a readable message if path is missing."""
    if not path.exists():
        raise FileNotFoundError(f"{file_type.capitalize()} file not found at {path}.")


def format_validation_errors(error: ValidationError) -> str:
    """Format pydantic validation errors as an indented bullet list."""
    lines = []
    for detail in error.errors():
        loc = ".".join(str(x) for x in detail["loc"])
        lines.append(f"  - {loc}: {detail['msg']}")
    return "\n".join(lines)


def load_validated_json(
    path: Path,
    model: type[ModelT],
    file_type: str = "config",
    recovery_hint: str | None = None,
    encoding: str = "utf-8",
) -> ModelT:
    """Load a JSON file and validate it against a pydantic model.

    Args:
        path: File to load.
        model: Pydantic model class to validate against.
        file_type: Name used in error messages.
        recovery_hint: Extra sentence appended to error messages.
        encoding: File encoding.

    Returns:
        Validated model instance.

    Raises:
        InvalidConfigurationError: If the file is not valid JSON or fails validation.
    """
    hint = f"\n\n{recovery_hint}" if recovery_hint else ""

    try:
        with path.open(encoding=encoding) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidConfigurationError(f"Invalid JSON in {file_type} file {path}: {e}{hint}") from e
    except OSError as e:
        raise InvalidConfigurationError(f"Could not read {file_type} file {path}: {e}{hint}") from e

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidConfigurationError(
            f"Invalid {file_type} configuration in {path}:\n" + format_validation_errors(e) + hint
        ) from e
