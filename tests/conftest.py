from __future__ import annotations

import pytest

from app.logging_utils import LOG_DIR_ENV


@pytest.fixture(autouse=True)
def _isolated_log_dirs(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("PIANOMORPH_LOG_DIR", str(tmp_path / "lib-logs"))
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path / "app-logs"))
