from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

_LOGGER = logging.getLogger("pianomorph.export")

DEFAULT_EXPORT_STEM = "piano-arrangement"
ABC_SUFFIX = ".abc"
_UNSAFE_CHARS = re.compile(r"[^\w\s().,'&-]", re.UNICODE)
_MAX_STEM_CHARS = 120


def sanitize_filename(title: str) -> str:
    """Turn a score title into a safe ``.abc`` filename."""
    stem = _UNSAFE_CHARS.sub("", title)
    stem = " ".join(stem.split()).strip(" .")
    stem = stem[:_MAX_STEM_CHARS].rstrip(" .")
    return f"{stem or DEFAULT_EXPORT_STEM}{ABC_SUFFIX}"


@dataclass(frozen=True, slots=True)
class ExportArtifact:
    filename: str
    content: str

    def to_bytes(self) -> bytes:
        return self.content.encode("utf-8")

    def write(self, directory: str | Path) -> Path:
        """Write the artifact into ``directory``; content is written verbatim."""
        target_dir = Path(directory).expanduser()
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / self.filename
        path.write_bytes(self.to_bytes())
        _LOGGER.info("Exported %d bytes to %s", len(self.content), path)
        return path


def build_export(title: str, notation: str) -> ExportArtifact:
    return ExportArtifact(filename=sanitize_filename(title), content=notation)
