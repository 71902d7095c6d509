from __future__ import annotations

from typing import Literal

ErrorKind = Literal["empty_response", "malformed_result", "auth", "transport"]


class PianoMorphError(Exception):
    """Base error for the Piano Morph library."""


class InputValidationError(PianoMorphError):
    """Raised when a source input or config fails a local precondition."""


class ArrangementError(PianoMorphError):
    """Base error for a failed arrangement round trip."""

    kind: ErrorKind = "transport"


class EmptyResponseError(ArrangementError):
    """Raised when the model returns no text content."""

    kind: ErrorKind = "empty_response"


class MalformedResultError(ArrangementError):
    """Raised when the model text is not a complete arrangement payload."""

    kind: ErrorKind = "malformed_result"


class AuthError(ArrangementError):
    """Raised when the credential or model identity is missing or invalid."""

    kind: ErrorKind = "auth"


class TransportError(ArrangementError):
    """Raised for any other provider or network failure."""

    kind: ErrorKind = "transport"
