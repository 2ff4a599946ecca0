"""Diagnostics and the exception taxonomy shared by every assembly phase.

Advisory findings are reported as :class:`Diagnostic` values and accumulate
alongside successful results. Blocking failures are raised as subclasses of
:class:`DocumentAssemblyError`; the document generation entry point converts
them into phase-tagged :class:`ProcessingError` records instead of letting
them escape.
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import enum
import typing as typ


class Severity(enum.StrEnum):
    """How much a diagnostic should worry the caller."""

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Phase(enum.StrEnum):
    """States of a single generation request."""

    IDLE = "idle"
    VALIDATING = "validating"
    COMPILING_TEMPLATE = "compiling_template"
    COMPILING_STYLE = "compiling_style"
    RASTERIZING = "rasterizing"
    PAGINATING = "paginating"
    ENCODING = "encoding"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMEOUT = "timeout"


@dc.dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single validation finding.

    Attributes
    ----------
    code : str
        Stable machine-readable identifier such as ``"NUMERIC_STRING"``.
    message : str
        Human-readable description.
    severity : Severity
        ``CRITICAL`` blocks the phase that produced it; everything else is
        advisory.
    path : str or None
        Dotted path of the offending field, when one applies.
    line, column : int or None
        1-based source position, when one applies.
    suggestion : str or None
        Optional hint for fixing the input.
    """

    code: str
    message: str
    severity: Severity = Severity.WARNING
    path: str | None = None
    line: int | None = None
    column: int | None = None
    suggestion: str | None = None

    @property
    def is_blocking(self) -> bool:
        """Return ``True`` when the diagnostic must stop processing."""
        return self.severity is Severity.CRITICAL


@dc.dataclass(frozen=True, slots=True)
class ProcessingError:
    """A failure recorded against the phase it happened in."""

    code: str
    message: str
    phase: Phase
    details: typ.Mapping[str, typ.Any] | None = None
    timestamp: dt.datetime = dc.field(default_factory=lambda: dt.datetime.now(dt.UTC))


class DocumentAssemblyError(RuntimeError):
    """Base class for blocking failures raised by the assembly engine."""

    code = "ASSEMBLY_ERROR"
    phase = Phase.FAILED

    def __init__(
        self,
        message: str,
        *,
        diagnostics: typ.Sequence[Diagnostic] = (),
        details: typ.Mapping[str, typ.Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.diagnostics = tuple(diagnostics)
        self.details = details

    def to_processing_error(self, phase: Phase | None = None) -> ProcessingError:
        """Return the phase-tagged record for this failure."""
        return ProcessingError(
            code=self.code,
            message=self.message,
            phase=phase or self.phase,
            details=self.details,
        )


class ExtractionError(DocumentAssemblyError):
    """Raised when markup is rejected with a critical diagnostic."""

    code = "EXTRACTION_ERROR"
    phase = Phase.VALIDATING


class GeometryError(DocumentAssemblyError, ValueError):
    """Raised when a page geometry cannot hold any content."""

    code = "INVALID_PAGE_SETUP"
    phase = Phase.VALIDATING


class TemplateSyntaxError(DocumentAssemblyError):
    """Raised when template delimiters or blocks are unbalanced."""

    code = "TEMPLATE_SYNTAX_ERROR"
    phase = Phase.COMPILING_TEMPLATE

    def __init__(
        self,
        message: str,
        *,
        line: int | None = None,
        column: int | None = None,
        region: str | None = None,
    ) -> None:
        diagnostic = Diagnostic(
            code=self.code,
            message=message,
            severity=Severity.CRITICAL,
            path=region,
            line=line,
            column=column,
        )
        location = f" (line {line}, column {column})" if line is not None else ""
        super().__init__(f"{message}{location}", diagnostics=[diagnostic])
        self.reason = message
        self.line = line
        self.column = column
        self.region = region


class RasterizationError(DocumentAssemblyError):
    """Raised when the rasterization backend fails."""

    code = "RASTERIZATION_ERROR"
    phase = Phase.RASTERIZING


class EncodingError(DocumentAssemblyError):
    """Raised when the document encoding backend fails."""

    code = "ENCODING_ERROR"
    phase = Phase.ENCODING


class HelperRegistrationError(TypeError):
    """Raised when a helper cannot be registered."""


__all__ = [
    "Diagnostic",
    "DocumentAssemblyError",
    "EncodingError",
    "ExtractionError",
    "GeometryError",
    "HelperRegistrationError",
    "Phase",
    "ProcessingError",
    "RasterizationError",
    "Severity",
    "TemplateSyntaxError",
]
