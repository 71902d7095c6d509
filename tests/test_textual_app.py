import pytest
from textual.widgets import Button

from app.logging_utils import LOG_DIR_ENV
from app.textual_app import CredentialScreen, PianoMorphApp
from app.tui_base import COPY_HINT_MESSAGE, HeaderControl
from pianomorph import (
    ArrangementController,
    ArrangementErr,
    ArrangementMetadata,
    ArrangementOk,
    ArrangementResult,
    AuthError,
    SessionState,
)

_ORIGINAL = "X:1\nT:Test\nK:C\nC D E F|"
_MORPHED = "X:1\nT:Test\nK:C\nC,2 | E,2|"


class _StubClient:
    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.requests = []

    async def submit(self, request):
        self.requests.append(request)
        return self.outcomes.pop(0)


class _RecordingRenderer:
    def __init__(self) -> None:
        self.rendered: list[str] = []

    def render(self, surface, notation: str) -> None:
        self.rendered.append(notation)
        surface.update(notation)


def _app(client, renderer=None, **kwargs) -> PianoMorphApp:
    controller = ArrangementController(client, SessionState(original_notation=_ORIGINAL))
    return PianoMorphApp(controller, renderer=renderer or _RecordingRenderer(), **kwargs)


def _morphed() -> ArrangementOk:
    return ArrangementOk(
        ArrangementResult(
            notation=_MORPHED,
            explanation="Bass simplified to roots.",
            metadata=ArrangementMetadata(complexity="low", style_notes="steady left hand"),
        )
    )


@pytest.mark.asyncio
async def test_app_shows_traffic_lights(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    async with _app(_StubClient()).run_test() as pilot:
        close = pilot.app.query_one("#tl-close", HeaderControl)
        export = pilot.app.query_one("#tl-export", HeaderControl)
        menu = pilot.app.query_one("#tl-menu", HeaderControl)
        assert close.render() == "✕"
        assert export.render() == "⤓"
        assert menu.render() == "●"
        assert close.region.x < export.region.x < menu.region.x


@pytest.mark.asyncio
async def test_app_renders_original_on_mount(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    renderer = _RecordingRenderer()
    async with _app(_StubClient(), renderer).run_test() as pilot:
        await pilot.pause()
        assert pilot.app.rendered_notation == _ORIGINAL
        assert renderer.rendered == [_ORIGINAL]
        assert pilot.app.query_one("#apply", Button).disabled is False
    assert (tmp_path / "textual-ui.log").exists()


@pytest.mark.asyncio
async def test_apply_replaces_score_and_reset_restores(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    client = _StubClient(_morphed())
    renderer = _RecordingRenderer()
    async with _app(client, renderer).run_test() as pilot:
        pilot.app.action_apply()
        await pilot.app.workers.wait_for_complete()
        await pilot.pause()

        assert pilot.app.rendered_notation == _MORPHED
        notes = pilot.app._notes_text().plain
        assert "Bass simplified to roots." in notes
        assert "Technical Focus: steady left hand" in notes

        pilot.app.action_reset()
        await pilot.pause()
        assert pilot.app.rendered_notation == _ORIGINAL
        assert renderer.rendered == [_ORIGINAL, _MORPHED, _ORIGINAL]
    assert len(client.requests) == 1


@pytest.mark.asyncio
async def test_auth_failure_opens_credential_screen(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    keys: list[str] = []
    client = _StubClient(ArrangementErr(AuthError("Requested entity was not found.")))
    async with _app(client, on_api_key=keys.append).run_test() as pilot:
        pilot.app.action_apply()
        await pilot.pause()
        await pilot.pause()
        assert isinstance(pilot.app.screen, CredentialScreen)

        await pilot.press("k", "e", "y", "enter")
        await pilot.app.workers.wait_for_complete()
        await pilot.pause()

        assert keys == ["key"]
        assert pilot.app.rendered_notation == _ORIGINAL


@pytest.mark.asyncio
async def test_export_writes_current_notation(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path / "logs"))
    async with _app(_StubClient(), export_dir=tmp_path).run_test() as pilot:
        pilot.app.controller.update_config(title="My Song")
        pilot.app.action_export()
        await pilot.pause()
    assert (tmp_path / "My Song.abc").read_bytes() == _ORIGINAL.encode("utf-8")


@pytest.mark.asyncio
async def test_copy_without_selection_shows_hint(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    async with _app(_StubClient()).run_test() as pilot:
        messages: list[str] = []
        monkeypatch.setattr(
            pilot.app, "notify", lambda message, **kwargs: messages.append(message)
        )
        monkeypatch.setattr(pilot.app, "_selected_text", lambda: None)
        monkeypatch.setattr(pilot.app, "copy_fallback_text", lambda: None)
        pilot.app.action_copy_selection()
        assert messages == [COPY_HINT_MESSAGE]


@pytest.mark.asyncio
async def test_copy_selection_uses_pyperclip(monkeypatch, tmp_path) -> None:
    import pyperclip

    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    copied: list[str] = []
    monkeypatch.setattr(pyperclip, "copy", copied.append)
    async with _app(_StubClient()).run_test() as pilot:
        monkeypatch.setattr(pilot.app, "_selected_text", lambda: "C D E F|")
        pilot.app.action_copy_selection()
        assert copied == ["C D E F|"]


@pytest.mark.asyncio
async def test_copy_without_selection_copies_score(monkeypatch, tmp_path) -> None:
    import pyperclip

    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    copied: list[str] = []
    monkeypatch.setattr(pyperclip, "copy", copied.append)
    async with _app(_StubClient()).run_test() as pilot:
        monkeypatch.setattr(pilot.app, "_selected_text", lambda: None)
        pilot.app.action_copy_selection()
        assert copied == [_ORIGINAL]


@pytest.mark.asyncio
async def test_source_edit_refreshes_apply_button(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    async with _app(_StubClient()).run_test() as pilot:
        apply_button = pilot.app.query_one("#apply", Button)
        assert apply_button.disabled is False

        pilot.app.controller.set_source_text("   ")
        await pilot.pause()
        assert apply_button.disabled is True

        pilot.app.controller.set_source_text(_ORIGINAL)
        await pilot.pause()
        assert apply_button.disabled is False


class _BrokenClient:
    async def submit(self, request):
        raise KeyError("choices")


@pytest.mark.asyncio
async def test_unexpected_client_failure_keeps_app_running(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    async with _app(_BrokenClient()).run_test() as pilot:
        pilot.app.action_apply()
        await pilot.app.workers.wait_for_complete()
        await pilot.pause()

        assert pilot.app.is_running
        assert pilot.app.rendered_notation == _ORIGINAL
        assert pilot.app.query_one("#apply", Button).disabled is False
