from __future__ import annotations

import base64
import binascii
import logging
import os
from types import MappingProxyType
from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import InputValidationError

_LOGGER = logging.getLogger("pianomorph.config")

DEFAULT_MODEL = os.environ.get("PIANOMORPH_MODEL", "gemini/gemini-3-pro-preview")
DEFAULT_TITLE = "Piano Arrangement"
DEFAULT_IMAGE_MIME = "image/jpeg"


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        _LOGGER.warning("Ignoring non-numeric %s=%r; using %s.", name, raw, default)
        return default


DEFAULT_TIMEOUT_SECONDS = _env_float("PIANOMORPH_TIMEOUT_SECONDS", 120.0)

DifficultyLevel = Literal[1, 2, 3, 4, 5]
MusicalStyle = Literal[
    "Original",
    "Classical",
    "Jazz Swing",
    "Lo-fi Chill",
    "Cinematic",
    "Pop Ballad",
]
HandSize = Literal["Standard", "MaxOctave", "MaxSeventh"]
InputMode = Literal["text", "image"]

DIFFICULTY_LEVELS: tuple[DifficultyLevel, ...] = (1, 2, 3, 4, 5)
MUSICAL_STYLES: tuple[MusicalStyle, ...] = (
    "Original",
    "Classical",
    "Jazz Swing",
    "Lo-fi Chill",
    "Cinematic",
    "Pop Ballad",
)
HAND_SIZES: tuple[HandSize, ...] = ("Standard", "MaxOctave", "MaxSeventh")

DIFFICULTY_LABELS: Mapping[DifficultyLevel, str] = MappingProxyType(
    {
        1: "Early Beginner (Melody + Simple LH Roots)",
        2: "Intermediate (Alberti Bass & Basic Patterns)",
        3: "Rich Intermediate (Full Chords & Syncopation)",
        4: "Advanced (Stride Piano & Inner Voices)",
        5: "Concert Virtuoso (Rapid Arpeggios & Runs)",
    }
)
HAND_SIZE_LABELS: Mapping[HandSize, str] = MappingProxyType(
    {
        "Standard": "Standard",
        "MaxOctave": "Small (Max Octave)",
        "MaxSeventh": "Petite (Max 7th)",
    }
)

INITIAL_ABC = """X:1
T:Gymnopédie No. 1 (Theme)
C:Erik Satie
M:3/4
L:1/4
Q:1/4=70
V:1 name="Piano"
K:D
%%score {1 | 2}
V:1
z2 f | a2 g | f2 c | e2 d | B2 c | d2 A | F2 G | A2 E |
V:2
[G,B,D]3 | [F,A,C]3 | [G,B,D]3 | [F,A,C]3 | [G,B,D]3 | [F,A,C]3 | [G,B,D]3 | [F,A,C]3 |"""


class ArrangementConfig(BaseModel):
    """User preferences for one arrangement request."""

    difficulty: DifficultyLevel = 3
    style: MusicalStyle = "Original"
    hand_size: HandSize = "Standard"
    title: str = DEFAULT_TITLE

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def difficulty_label(self) -> str:
        return DIFFICULTY_LABELS[self.difficulty]

    @property
    def hand_size_label(self) -> str:
        return HAND_SIZE_LABELS[self.hand_size]

    def with_changes(self, **changes: Any) -> "ArrangementConfig":
        """Return a validated copy with ``changes`` applied."""
        data = self.model_dump()
        data.update(changes)
        try:
            return ArrangementConfig.model_validate(data)
        except ValidationError as exc:
            raise InputValidationError(f"Invalid arrangement config: {exc}") from exc


class TextSource(BaseModel):
    kind: Literal["text"] = "text"
    notation: str

    model_config = ConfigDict(frozen=True, extra="forbid")


class ImageSource(BaseModel):
    kind: Literal["image"] = "image"
    data: bytes
    mime_type: str = DEFAULT_IMAGE_MIME

    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    @classmethod
    def from_data_uri(cls, value: str, mime_type: str | None = None) -> "ImageSource":
        """Decode a ``data:`` URI or bare base64 string into an image source."""
        header, sep, payload = value.partition(",")
        if not sep:
            payload, header = header, ""
        if header.startswith("data:"):
            declared = header.removeprefix("data:").split(";", 1)[0]
            mime_type = mime_type or declared or None
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InputValidationError("Image payload is not valid base64") from exc
        return cls(data=data, mime_type=mime_type or DEFAULT_IMAGE_MIME)


SourceInput = Annotated[Union[TextSource, ImageSource], Field(discriminator="kind")]


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


class ArrangementMetadata(BaseModel):
    complexity: str = Field(description="Overall reach and technical complexity of the arrangement")
    style_notes: str = Field(
        alias="styleNotes",
        description="Technical focus and stylistic devices used",
    )

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @field_validator("complexity", "style_notes")
    @classmethod
    def _validate_not_blank(cls, value: str) -> str:
        return _require_text(value)


class ArrangementResult(BaseModel):
    """Structured payload returned by the arrangement model."""

    notation: str = Field(description="The complete piano-optimized ABC notation")
    explanation: str = Field(description="Details about the piano-specific techniques used")
    metadata: ArrangementMetadata

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @field_validator("notation", "explanation")
    @classmethod
    def _validate_not_blank(cls, value: str) -> str:
        return _require_text(value)
