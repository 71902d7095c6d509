from __future__ import annotations

import pytest

from pianomorph.export import DEFAULT_EXPORT_STEM, build_export, sanitize_filename


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("My Song", "My Song.abc"),
        ("  Clair   de  Lune ", "Clair de Lune.abc"),
        ("a/b\\c:d*e?", "abcde.abc"),
        ("../../etc/passwd", "etcpasswd.abc"),
        ("", f"{DEFAULT_EXPORT_STEM}.abc"),
        ("???", f"{DEFAULT_EXPORT_STEM}.abc"),
    ],
)
def test_sanitize_filename(title: str, expected: str) -> None:
    assert sanitize_filename(title) == expected


def test_export_content_is_byte_identical(tmp_path) -> None:
    notation = "X:1\nT:My Song\nK:D\n[G,B,D]3 | f2 é |\r\n"
    artifact = build_export("My Song", notation)

    path = artifact.write(tmp_path / "out")

    assert path == tmp_path / "out" / "My Song.abc"
    assert path.read_bytes() == notation.encode("utf-8")
    assert path.read_bytes().decode("utf-8") == artifact.content
