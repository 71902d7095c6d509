"""Prompt templates and request construction for piano arrangements."""

from __future__ import annotations

import json
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict

from .config import (
    ArrangementConfig,
    ArrangementResult,
    DifficultyLevel,
    HandSize,
    ImageSource,
    SourceInput,
    TextSource,
)
from .errors import InputValidationError

DIFFICULTY_DETAILS: Mapping[DifficultyLevel, str] = MappingProxyType(
    {
        1: (
            "single right-hand melody line with simple left-hand roots; "
            "single notes in the RH, simple block chords or single bass notes in the LH"
        ),
        2: "basic accompaniment patterns like Alberti bass or simple broken-chord figures",
        3: "full four-part harmony, syncopation, and basic hand independence",
        4: (
            "complex rhythms, wide-ranging LH patterns (stride/tenths), "
            "and decorative RH runs with independent inner voices"
        ),
        5: (
            "virtuosic rapid arpeggiation and dense polyphony; rapid chromatic scales, "
            "grand sweeping arpeggios, and thick polyphonic textures"
        ),
    }
)

HAND_SIZE_RULES: Mapping[HandSize, str] = MappingProxyType(
    {
        "Standard": "Standard hand: any reach comfortable for an average adult pianist is allowed.",
        "MaxOctave": (
            "Small hand: no interval wider than an octave in either hand. "
            "Never stack simultaneous notes in one hand beyond an 8th."
        ),
        "MaxSeventh": (
            "Petite hand: no interval of an octave or wider in either hand. "
            "Keep every simultaneous group of notes in one hand within a 7th."
        ),
    }
)

TEXT_SOURCE_LEAD = "Transform the following ABC music notation"
IMAGE_SOURCE_LEAD = "Analyze the attached image of sheet music and transform it"

ARRANGEMENT_PROMPT_TEMPLATE = """You are a world-class piano arranger. {lead} into a PIANO-SPECIFIC arrangement.

<parameters>
- Difficulty: {difficulty}/5 ({difficulty_detail})
- Style: {style}
- Hand Size Constraint: {hand_size}
- Piece Title: {title}
</parameters>

<hand_size_rule>
{hand_size_rule}
</hand_size_rule>

<rules>
1. The "notation" field MUST be valid, complete ABC notation that renders on its own.
2. Use piano-specific textures: Alberti bass for classical, stride LH for jazz, lush rolling 7th/9th chords for lo-fi.
3. For high difficulty (4-5), include rapid scale runs, arpeggiations across the keyboard, and independent inner voices.
4. Follow the hand size rule above strictly.
5. Keep the notation readable for a pianist with separate LH and RH voices.
6. Keep the identity of the piece: it must still be recognizable as the same music.
</rules>

<task>
Return a single JSON object matching the schema exactly. No markdown, no code fences, no other text.
</task>

<schema>
{schema}
</schema>"""


def schema_signature() -> str:
    """Return the result JSON schema as a compact string for prompts."""
    schema = ArrangementResult.model_json_schema(by_alias=True)
    return json.dumps(schema, sort_keys=True, separators=(",", ":"))


class ArrangementRequest(BaseModel):
    """A fully-formed generation request: instruction, source and output schema."""

    instruction: str
    source: SourceInput
    response_format: type[BaseModel] = ArrangementResult

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def is_image(self) -> bool:
        return isinstance(self.source, ImageSource)


def _validate_source(source: SourceInput) -> None:
    if isinstance(source, TextSource):
        if not source.notation.strip():
            raise InputValidationError("ABC notation input is empty")
        return
    if isinstance(source, ImageSource):
        if not source.data:
            raise InputValidationError("Image input is empty")
        if not source.mime_type.startswith("image/"):
            raise InputValidationError(f"Unsupported image type: {source.mime_type}")
        return
    raise InputValidationError(f"Unsupported source input: {type(source).__name__}")


def build_instruction(config: ArrangementConfig, *, is_image: bool) -> str:
    return ARRANGEMENT_PROMPT_TEMPLATE.format(
        lead=IMAGE_SOURCE_LEAD if is_image else TEXT_SOURCE_LEAD,
        difficulty=config.difficulty,
        difficulty_detail=DIFFICULTY_DETAILS[config.difficulty],
        style=config.style,
        hand_size=config.hand_size_label,
        hand_size_rule=HAND_SIZE_RULES[config.hand_size],
        title=config.title,
        schema=schema_signature(),
    )


def build_request(source: SourceInput, config: ArrangementConfig) -> ArrangementRequest:
    """Build the arrangement request for ``source`` under ``config``."""
    _validate_source(source)
    instruction = build_instruction(config, is_image=isinstance(source, ImageSource))
    return ArrangementRequest(instruction=instruction, source=source)


def build_messages(request: ArrangementRequest) -> list[dict[str, Any]]:
    """Render the request as a single multi-part chat message."""
    source = request.source
    if isinstance(source, ImageSource):
        content: list[dict[str, Any]] = [
            {"type": "image_url", "image_url": {"url": source.to_data_uri()}},
            {"type": "text", "text": request.instruction},
        ]
    else:
        content = [
            {"type": "text", "text": f"Input ABC: {source.notation}\n\n{request.instruction}"},
        ]
    return [{"role": "user", "content": content}]
