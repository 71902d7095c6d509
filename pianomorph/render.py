"""Notation renderer adapters.

A renderer draws one ABC notation string onto a surface. Surfaces only need
an ``update(content)`` method, so a Textual ``Static`` works directly. Each
call replaces whatever the surface showed before. Notation is never checked
here; parse and layout failures come from the underlying library.
"""

from __future__ import annotations

import json
import logging
from fractions import Fraction
from pathlib import Path
from string import Template
from typing import Any, Protocol

from music21 import chord, converter, note, stream
from rich.text import Text

_LOGGER = logging.getLogger("pianomorph.render")

ABCJS_CDN_URL = "https://cdn.jsdelivr.net/npm/abcjs@6.4.4/dist/abcjs-basic-min.js"
ABCJS_RENDER_OPTIONS: dict[str, Any] = {
    "responsive": "resize",
    "paddingbottom": 30,
    "paddingtop": 30,
    "paddingleft": 10,
    "paddingright": 10,
    "scale": 1.2,
}

_HTML_TEMPLATE = Template(
    """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>$title</title>
<script src="$script_url"></script>
<style>
body { background: #fbfbfb; margin: 0; padding: 2rem; font-family: Georgia, serif; }
.score { background: #fff; border: 1px solid #e7e5e4; border-radius: 12px; padding: 2rem; min-height: 400px; }
</style>
</head>
<body>
<div id="score" class="score abcjs-container"></div>
<script>
const notation = $notation;
const options = $options;
ABCJS.renderAbc("score", notation, options);
</script>
</body>
</html>
"""
)


class ScoreSurface(Protocol):
    def update(self, content: Any) -> None: ...


class NotationRenderer(Protocol):
    def render(self, surface: ScoreSurface, notation: str) -> None: ...


class HtmlFileSurface:
    """Surface backed by a single HTML file that is overwritten on every update."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def update(self, content: Any) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(str(content), encoding="utf-8")

    def as_uri(self) -> str:
        return self.path.resolve().as_uri()


class HtmlScoreRenderer:
    """Engrave with abcjs inside a standalone HTML page."""

    def __init__(
        self,
        *,
        script_url: str = ABCJS_CDN_URL,
        options: dict[str, Any] | None = None,
        title: str = "Piano Score",
    ) -> None:
        self._script_url = script_url
        self._options = dict(ABCJS_RENDER_OPTIONS if options is None else options)
        self._title = title

    def build_page(self, notation: str) -> str:
        # "</" must not appear inside the inline script.
        encoded = json.dumps(notation).replace("</", "<\\/")
        return _HTML_TEMPLATE.substitute(
            title=self._title,
            script_url=self._script_url,
            notation=encoded,
            options=json.dumps(self._options, sort_keys=True),
        )

    def render(self, surface: ScoreSurface, notation: str) -> None:
        surface.update(self.build_page(notation))


def _format_length(quarter_length: float | Fraction) -> str:
    value = Fraction(quarter_length).limit_denominator(64)
    if value.denominator == 1:
        return str(value.numerator)
    return f"{value.numerator}/{value.denominator}"


def _token(element: Any) -> str:
    if isinstance(element, chord.Chord):
        label = "[" + " ".join(p.nameWithOctave for p in element.pitches) + "]"
    elif isinstance(element, note.Note):
        label = element.nameWithOctave
    elif isinstance(element, note.Rest):
        label = "z"
    else:
        label = type(element).__name__
    length = element.duration.quarterLength
    if length == 1:
        return label
    return f"{label}:{_format_length(length)}"


def _first_score(parsed: Any) -> stream.Stream:
    if isinstance(parsed, stream.Opus):
        scores = list(parsed.scores)
        if not scores:
            raise ValueError("ABC notation contains no tunes")
        return scores[0]
    return parsed


def describe_score(notation: str) -> list[str]:
    """Parse ABC with music21 and lay it out as one line per measure per part."""
    score = _first_score(converter.parse(notation, format="abc"))
    lines: list[str] = []
    metadata = score.metadata
    if metadata is not None and metadata.title:
        lines.append(metadata.title)
        if metadata.composer:
            lines.append(metadata.composer)
        lines.append("")

    parts = list(score.parts) if isinstance(score, stream.Score) else []
    if not parts:
        parts = [score]
    for index, part in enumerate(parts, start=1):
        lines.append(part.partName or f"Part {index}")
        measures = list(part.getElementsByClass(stream.Measure))
        if not measures:
            tokens = " ".join(_token(el) for el in part.flatten().notesAndRests)
            lines.append(f"    | {tokens}")
            continue
        for measure in measures:
            tokens = " ".join(_token(el) for el in measure.recurse().notesAndRests)
            lines.append(f"{measure.number:>3} | {tokens}")
        lines.append("")
    return lines


class TerminalScoreRenderer:
    """Lay out a music21 parse of the notation as plain text for the terminal."""

    def render(self, surface: ScoreSurface, notation: str) -> None:
        lines = describe_score(notation)
        _LOGGER.debug("Rendered %d score lines for the terminal.", len(lines))
        surface.update(Text("\n".join(lines).rstrip()))
