import logging

from app.logging_utils import LOG_DIR_ENV, default_log_dir, log_path, setup_file_logger
from pianomorph.logging_utils import get_log_dir, get_log_path, log_exception


def test_log_path_uses_env_override(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    assert default_log_dir() == tmp_path
    assert log_path("demo.log") == tmp_path / "demo.log"


def test_setup_file_logger_creates_handler(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    logger_name = f"app.test.{tmp_path.name}"
    path = setup_file_logger(logger_name, "app.log")
    assert path == tmp_path / "app.log"
    logger = logging.getLogger(logger_name)
    assert any(isinstance(handler, logging.FileHandler) for handler in logger.handlers)
    assert setup_file_logger(logger_name, "app.log") == path
    assert sum(isinstance(handler, logging.FileHandler) for handler in logger.handlers) == 1


def test_log_exception_appends_traceback(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("PIANOMORPH_LOG_DIR", str(tmp_path))
    assert get_log_dir() == tmp_path

    try:
        raise ValueError("bad notation")
    except ValueError as exc:
        path = log_exception("arrangement", exc)

    assert path == get_log_path()
    content = path.read_text(encoding="utf-8")
    assert "arrangement failed: ValueError: bad notation" in content
    assert "Traceback" in content


def test_log_dir_env_name_follows_branding() -> None:
    assert LOG_DIR_ENV == "PIANO_MORPH_LOG_DIR"
