"""Exceptions raised by the analysis engine."""

from __future__ import annotations

from typing import Optional


class JsxDoctorError(Exception):
    """Base class for engine errors."""


class ParseError(JsxDoctorError):
    """A file could not be parsed; the file is skipped, the run continues."""

    def __init__(
        self,
        file: str,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        self.file = file
        self.message = message
        self.line = line
        self.column = column
        location = f"{file}:{line}:{column}" if line is not None else file
        super().__init__(f"{location}: {message}")


class ScanRootError(JsxDoctorError):
    """The scan root is missing or unreadable; the run cannot start."""


class GenerationError(JsxDoctorError):
    """A mutated tree cannot be turned back into source text."""
