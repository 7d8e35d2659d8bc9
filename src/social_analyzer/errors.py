"""Error surface shared by every pipeline stage."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    UNSUPPORTED_FORMAT = "UnsupportedFormat"
    DEPENDENCY_NOT_READY = "DependencyNotReady"
    EXTRACTION_FAILED = "ExtractionFailed"
    DECODE_FAILED = "DecodeFailed"
    INSUFFICIENT_TEXT = "InsufficientText"
    MISSING_CREDENTIAL = "MissingCredential"
    SERVICE_ERROR = "ServiceError"


class PipelineError(Exception):
    """A failed pipeline run, tagged with the kind of failure."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "error_type": self.kind.value}

    def __repr__(self) -> str:
        return f"PipelineError({self.kind.value}, {self.message!r})"
