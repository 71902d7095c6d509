from __future__ import annotations

from .config import (
    DIFFICULTY_LABELS,
    HAND_SIZE_LABELS,
    INITIAL_ABC,
    MUSICAL_STYLES,
    ArrangementConfig,
    ArrangementMetadata,
    ArrangementResult,
    DifficultyLevel,
    HandSize,
    ImageSource,
    InputMode,
    MusicalStyle,
    SourceInput,
    TextSource,
)
from .errors import (
    ArrangementError,
    AuthError,
    EmptyResponseError,
    InputValidationError,
    MalformedResultError,
    PianoMorphError,
    TransportError,
)
from .export import ExportArtifact, build_export, sanitize_filename
from .images import load_image_file
from .logging_utils import configure_logging as _configure_logging
from .outcome import ArrangementErr, ArrangementOk, ArrangementOutcome
from .prompts import ArrangementRequest, build_request
from .providers.litellm import LiteLLMArrangementClient
from .render import HtmlFileSurface, HtmlScoreRenderer, NotationRenderer, TerminalScoreRenderer
from .session import ArrangementController, SessionHooks, SessionState

__all__ = [
    "DIFFICULTY_LABELS",
    "HAND_SIZE_LABELS",
    "INITIAL_ABC",
    "MUSICAL_STYLES",
    "ArrangementConfig",
    "ArrangementController",
    "ArrangementErr",
    "ArrangementError",
    "ArrangementMetadata",
    "ArrangementOk",
    "ArrangementOutcome",
    "ArrangementRequest",
    "ArrangementResult",
    "AuthError",
    "DifficultyLevel",
    "EmptyResponseError",
    "ExportArtifact",
    "HandSize",
    "HtmlFileSurface",
    "HtmlScoreRenderer",
    "ImageSource",
    "InputMode",
    "InputValidationError",
    "LiteLLMArrangementClient",
    "MalformedResultError",
    "MusicalStyle",
    "NotationRenderer",
    "PianoMorphError",
    "SessionHooks",
    "SessionState",
    "SourceInput",
    "TerminalScoreRenderer",
    "TextSource",
    "TransportError",
    "build_export",
    "build_request",
    "load_image_file",
    "sanitize_filename",
]

__version__ = "0.1.0"

_configure_logging()
del _configure_logging
