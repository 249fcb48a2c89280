"""Central application exception hierarchy.

This module defines the base application exception ``AppError`` and the
specialized subclasses used throughout the generator to represent its
failure modes: invalid configuration, invalid record data or mapping
rules, per-job rendering failures and overlapping run requests. Using a
centralized hierarchy keeps error handling and testing consistent.
"""

from __future__ import annotations

from typing import Any, Mapping


class AppError(Exception):
    """Base exception for all application-level errors.

    Parameters
    ----------
    code : str
        Machine-readable error code (e.g., ``'CONFIGURATION_ERROR'``).
    message : str
        Human-readable message describing the error.
    context : Mapping[str, Any] | None, optional
        Optional structured context for logging.
    transient : bool, optional
        Whether the error is temporary and may be retried.

    Examples
    --------
    >>> e = AppError('CODE', 'message', context={'k': 'v'})
    >>> e.code
    'CODE'
    >>> str(e)
    'CODE: message'
    """

    __slots__ = ("code", "message", "context", "transient")

    def __init__(
        self,
        code: str,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        transient: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = dict(context or {})
        self.transient = bool(transient)

    def __str__(self) -> str:
        """Return a compact string representation of the error."""
        return f"{self.code}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Return a log-safe dictionary representation of the error."""
        return {
            "error_code": self.code,
            "message": self.message,
            "context": self.context,
            "is_transient": self.transient,
        }


class ConfigurationError(AppError):
    """Raised for invalid or missing run configuration."""

    def __init__(
        self, message: str, *, context: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(
            "CONFIGURATION_ERROR", message, context=context, transient=False
        )


class DataValidationError(AppError):
    """Raised for record data that cannot be read or fails validation."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        code: str = "DATA_VALIDATION_ERROR",
    ) -> None:
        super().__init__(code, message, context=context, transient=False)


class MappingRuleError(DataValidationError):
    """Raised when a user mapping rule has an empty source key or tag."""

    def __init__(
        self, message: str, *, context: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(message, context=context, code="MAPPING_RULE_ERROR")


class UserInputError(AppError):
    """Raised when command-line or interactive input is invalid."""

    def __init__(
        self, message: str, *, context: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__("USER_INPUT_ERROR", message, context=context, transient=False)


class RenderError(AppError):
    """Raised by a renderer when a single presentation cannot be produced.

    The engine catches it per job; it never aborts a run.
    """

    def __init__(
        self, message: str, *, context: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__("RENDER_ERROR", message, context=context, transient=False)


class RunInProgressError(AppError):
    """Raised when a run is requested while another one is still active."""

    def __init__(
        self,
        message: str = "run already in progress",
        *,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(
            "RUN_IN_PROGRESS_ERROR", message, context=context, transient=True
        )
