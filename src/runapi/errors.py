"""Domain-specific errors for runapi."""

from __future__ import annotations


class RunApiError(Exception):
    """Base error for runapi."""


class ConfigError(RunApiError):
    """Raised when a configuration file cannot be read or is invalid."""


class ScanError(RunApiError):
    """Raised when a source file cannot be read or parsed during scanning."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


class GoSyntaxError(ScanError):
    """Raised when the Go source reader meets text it cannot tokenize or balance."""

    def __init__(self, path: str, line: int, message: str):
        super().__init__(path, f"line {line}: {message}")
        self.line = line


class RegistryFrozenError(RunApiError):
    """Raised when a type is registered after the registry was frozen."""


class ResolutionFailure(RunApiError):
    """Raised when a referenced type cannot be found."""


class UnresolvedReferenceError(ResolutionFailure):
    """Raised when a type token does not resolve to a registered declaration."""

    def __init__(self, token: str, reason: str):
        super().__init__(f"cannot resolve type {token!r}: {reason}")
        self.token = token
        self.reason = reason


class DirectiveSyntaxError(RunApiError):
    """Raised when a doc-comment directive is malformed."""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        location = f"line {line}, column {column}: " if line else ""
        super().__init__(f"{location}{message}")
        self.line = line
        self.column = column


class DocumentValidationError(RunApiError):
    """Raised when assembled documents miss required fields."""

    def __init__(self, issues: list[str]):
        lines = [f"found {len(issues)} API document validation issue(s):"]
        lines.extend(f"{i}. {issue}" for i, issue in enumerate(issues, start=1))
        super().__init__("\n".join(lines))
        self.issues = issues


class NoDocumentsError(RunApiError):
    """Raised when a scan finds no documented handler at all."""


class DocumentLoadError(RunApiError):
    """Raised when a previously generated document file cannot be loaded."""


class ShowDocError(RunApiError):
    """Raised when the ShowDoc API fails or returns an error payload."""

    def __init__(self, message: str, error_code: int | None = None):
        super().__init__(message)
        self.error_code = error_code


class ShowDocConfigError(ShowDocError):
    """Raised when pushing is requested but ShowDoc is disabled or lacks credentials."""
