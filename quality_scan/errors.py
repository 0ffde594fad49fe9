from __future__ import annotations


class QualityScanError(Exception):
    """Base class for failures raised by the quality scan pipeline."""


class ConfigError(QualityScanError, ValueError):
    """Invalid or missing runtime configuration."""


class DecodeError(QualityScanError, RuntimeError):
    """An image file could not be read or decoded."""


class UnsupportedElementType(QualityScanError, ValueError):
    """Pixel element type has no engine tensor equivalent."""


class EngineError(QualityScanError, RuntimeError):
    """The external analysis engine failed or returned malformed output."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code

    def __str__(self) -> str:
        message = super().__str__()
        if self.code is None:
            return message
        return f"{message} (code: {self.code:#x})"


class OutputError(QualityScanError, OSError):
    """The result stream could not be opened or written."""
