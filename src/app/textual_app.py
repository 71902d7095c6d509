from __future__ import annotations

import logging
import webbrowser
from pathlib import Path
from typing import Callable

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    Footer,
    Input,
    Label,
    RadioButton,
    RadioSet,
    Select,
    Static,
    TextArea,
)

from pianomorph import (
    DIFFICULTY_LABELS,
    HAND_SIZE_LABELS,
    MUSICAL_STYLES,
    ArrangementController,
    HtmlFileSurface,
    HtmlScoreRenderer,
    InputValidationError,
    NotationRenderer,
    SessionHooks,
    SessionState,
    TerminalScoreRenderer,
    load_image_file,
)
from pianomorph.logging_utils import log_exception

from .branding import APP_NAME
from .logging_utils import PREVIEW_FILENAME, UI_LOG_FILENAME, log_path, setup_file_logger
from .tui_base import ChromeHeader, CopySupportApp

LOGGER_NAME = f"{__package__ or 'app'}.textual"
LIBRARY_LOGGER_NAME = "pianomorph"
INTRO_TEXT = (
    "Professional Piano Rescoring\n\n"
    "Load an image of your sheet music or paste ABC notation to transform the piece. "
    "The arranger considers your hand size, skill level, and stylistic preferences."
)


class CredentialScreen(ModalScreen[str | None]):
    """Ask the user to (re)enter the model API key."""

    DEFAULT_CSS = """
    CredentialScreen {
        align: center middle;
    }
    #credential-dialog {
        width: 64;
        height: auto;
        padding: 1 2;
        border: thick $primary;
        background: $surface;
    }
    #credential-buttons {
        height: auto;
        margin-top: 1;
    }
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="credential-dialog"):
            yield Static(
                "The model rejected the current credential or could not find the model.\n"
                "Enter an API key to use for the next arrangement.",
                id="credential-prompt",
            )
            yield Input(placeholder="API key", password=True, id="api-key")
            with Horizontal(id="credential-buttons"):
                yield Button("Use key", id="use-key", variant="primary")
                yield Button("Cancel", id="cancel-key")

    def on_mount(self) -> None:
        self.query_one("#api-key", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.dismiss(event.value.strip() or None)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.id == "use-key":
            self.dismiss(self.query_one("#api-key", Input).value.strip() or None)
        else:
            self.dismiss(None)


class PianoMorphApp(CopySupportApp):
    """Studio arranger: source input and preferences on the left, score on the right."""

    TITLE = APP_NAME
    BINDINGS = [
        *CopySupportApp.BINDINGS,
        Binding("f5", "apply", "Apply"),
        Binding("f6", "reset", "Restore"),
        Binding("f7", "export", "Export"),
        Binding("f8", "preview", "Preview"),
    ]
    CSS = """
    #workspace {
        height: 1fr;
    }
    #sidebar {
        width: 48;
        padding: 0 1;
        border-right: solid $primary-background;
    }
    #sidebar Label {
        margin-top: 1;
        text-style: bold;
    }
    #abc-input {
        height: 10;
    }
    #image-row {
        height: auto;
    }
    #image-path {
        width: 1fr;
    }
    #sidebar Button {
        width: 100%;
        margin-top: 1;
    }
    #image-row Button {
        width: auto;
        margin-top: 0;
    }
    #main {
        padding: 0 2;
    }
    #score-title {
        text-style: bold;
        margin-bottom: 1;
    }
    #score {
        border: round $primary-background;
        padding: 1 2;
        min-height: 12;
    }
    #notes {
        margin-top: 1;
    }
    #main-actions {
        height: auto;
        margin-top: 1;
    }
    """

    def __init__(
        self,
        controller: ArrangementController,
        *,
        on_api_key: Callable[[str], None] | None = None,
        renderer: NotationRenderer | None = None,
        preview_renderer: NotationRenderer | None = None,
        export_dir: str | Path | None = None,
        initial_image: str | Path | None = None,
    ) -> None:
        super().__init__()
        self.controller = controller
        self._on_api_key = on_api_key
        self._renderer = renderer or TerminalScoreRenderer()
        self._preview_renderer = preview_renderer or HtmlScoreRenderer()
        self._export_dir = Path(export_dir) if export_dir is not None else Path.cwd()
        self._initial_image = initial_image
        self.rendered_notation: str | None = None
        self._ui_logger = logging.getLogger(LOGGER_NAME)

    @property
    def state(self) -> SessionState:
        return self.controller.state

    def copy_fallback_text(self) -> str | None:
        return self.state.current_notation or None

    def compose(self) -> ComposeResult:
        state = self.state
        config = state.config
        yield ChromeHeader(show_clock=False)
        with Horizontal(id="workspace"):
            with VerticalScroll(id="sidebar"):
                with RadioSet(id="input-mode"):
                    yield RadioButton("ABC Text", id="mode-text", value=state.input_mode == "text")
                    yield RadioButton(
                        "Scan Sheet", id="mode-image", value=state.input_mode == "image"
                    )
                yield TextArea(state.source_text, id="abc-input")
                with Horizontal(id="image-row"):
                    yield Input(placeholder="Path to JPEG/PNG sheet music", id="image-path")
                    yield Button("Load", id="load-image")
                    yield Button("Clear", id="clear-image")
                yield Static(id="image-status")
                yield Label("Difficulty")
                yield Select(
                    [(f"Lv. {level} - {label}", level) for level, label in DIFFICULTY_LABELS.items()],
                    value=config.difficulty,
                    allow_blank=False,
                    id="difficulty",
                )
                yield Label("Genre & Era")
                yield Select(
                    [(style, style) for style in MUSICAL_STYLES],
                    value=config.style,
                    allow_blank=False,
                    id="style",
                )
                yield Label("Reach Optimization")
                yield Select(
                    [(label, hand) for hand, label in HAND_SIZE_LABELS.items()],
                    value=config.hand_size,
                    allow_blank=False,
                    id="hand-size",
                )
                yield Label("Title")
                yield Input(value=config.title, placeholder="Piece title", id="title")
                yield Button("Apply Arrangement", id="apply", variant="primary")
                yield Button("Restore Original", id="reset")
            with VerticalScroll(id="main"):
                yield Static(id="score-title")
                yield Static(id="score")
                yield Static(id="notes")
                with Horizontal(id="main-actions"):
                    yield Button("Export Score", id="export")
                    yield Button("Open Preview", id="preview")
        yield Footer()

    def on_mount(self) -> None:
        log_file = setup_file_logger(LOGGER_NAME, UI_LOG_FILENAME)
        setup_file_logger(LIBRARY_LOGGER_NAME, UI_LOG_FILENAME)
        self._ui_logger.info("%s mounted; logs at %s", APP_NAME, log_file)
        self.controller.hooks = SessionHooks(
            on_change=self._on_state_change,
            on_busy_change=self._on_busy_change,
            on_error=self._on_error,
            on_credential_reselect=self._reselect_credential,
        )
        self._sync_view()
        if self._initial_image is not None:
            self.run_worker(self._load_image(str(self._initial_image)), group="image")

    # -- session hooks -------------------------------------------------

    def _on_state_change(self, state: SessionState) -> None:
        self._sync_view()

    def _on_busy_change(self, busy: bool) -> None:
        button = self.query_one("#apply", Button)
        button.label = "Arranging..." if busy else "Apply Arrangement"

    def _on_error(self, message: str) -> None:
        self.notify(message, title="Arrangement failed", severity="error", timeout=6.0)

    async def _reselect_credential(self) -> None:
        api_key = await self.push_screen_wait(CredentialScreen())
        if not api_key:
            self._ui_logger.info("Credential reselection cancelled.")
            return
        if self._on_api_key is not None:
            self._on_api_key(api_key)
        self.notify("Credential updated. Apply the arrangement again.", timeout=4.0)

    # -- view ----------------------------------------------------------

    def _sync_view(self) -> None:
        state = self.state
        config = state.config
        self.query_one("#score-title", Static).update(
            Text(
                f"{config.title or 'Untitled'}\n"
                f"{config.style} · Level {config.difficulty} · {config.hand_size_label}"
            )
        )
        image_status = "No image loaded."
        if state.image is not None:
            image_status = f"Image loaded ({state.image.mime_type}, {len(state.image.data)} bytes)."
        self.query_one("#image-status", Static).update(image_status)
        self.query_one("#apply", Button).disabled = not self.controller.can_submit()
        self.query_one("#notes", Static).update(self._notes_text())
        if state.current_notation != self.rendered_notation:
            self._render_score(state.current_notation)

    def _notes_text(self) -> Text:
        state = self.state
        result = state.last_result
        if result is not None:
            return Text(
                "Pedagogical Notes\n"
                f"{result.explanation}\n\n"
                f"Arrangement Reach: {result.metadata.complexity}\n"
                f"Technical Focus: {result.metadata.style_notes}"
            )
        if state.in_flight:
            return Text("Arranging...")
        if state.current_notation == state.original_notation:
            return Text(INTRO_TEXT)
        return Text("")

    def _render_score(self, notation: str) -> None:
        surface = self.query_one("#score", Static)
        try:
            self._renderer.render(surface, notation)
        except Exception as exc:
            self._ui_logger.warning("Score render failed: %s", exc, exc_info=True)
            log_exception("score render", exc)
            surface.update(Text(notation))
        self.rendered_notation = notation

    # -- events --------------------------------------------------------

    def on_radio_set_changed(self, event: RadioSet.Changed) -> None:
        mode = "image" if event.pressed.id == "mode-image" else "text"
        if mode != self.state.input_mode:
            self.controller.select_mode(mode)

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if event.text_area.id != "abc-input":
            return
        if event.text_area.text == self.state.source_text:
            return
        self.controller.set_source_text(event.text_area.text)

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.value is Select.BLANK:
            return
        field = {"difficulty": "difficulty", "style": "style", "hand-size": "hand_size"}.get(
            event.select.id or ""
        )
        if field is None or getattr(self.state.config, field) == event.value:
            return
        self.controller.update_config(**{field: event.value})

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "title" and event.value != self.state.config.title:
            self.controller.update_config(title=event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "image-path":
            self.action_load_image()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        actions: dict[str, Callable[[], object]] = {
            "apply": self.action_apply,
            "reset": self.action_reset,
            "export": self.action_export,
            "preview": self.action_preview,
            "load-image": self.action_load_image,
            "clear-image": self.action_clear_image,
        }
        action = actions.get(event.button.id or "")
        if action is not None:
            action()

    # -- actions -------------------------------------------------------

    def action_apply(self) -> None:
        if not self.controller.can_submit():
            self.notify("Load an image or enter ABC notation first.", severity="warning")
            return
        self.run_worker(self.controller.apply(), group="arrange")

    def action_reset(self) -> None:
        self.controller.reset()
        self.query_one("#image-path", Input).value = ""

    def action_export(self) -> None:
        try:
            path = self.controller.export(self._export_dir)
        except OSError as exc:
            log_exception("export", exc)
            self.notify(f"Export failed: {exc}", severity="error")
            return
        self.notify(f"Exported {path}", title="Export Score", timeout=4.0)

    def action_preview(self) -> None:
        surface = HtmlFileSurface(log_path(PREVIEW_FILENAME))
        self._preview_renderer.render(surface, self.state.current_notation)
        self._ui_logger.info("Wrote score preview to %s", surface.path)
        webbrowser.open(surface.as_uri())

    def action_load_image(self) -> None:
        path = self.query_one("#image-path", Input).value.strip()
        if not path:
            self.notify("Enter the path of a sheet music image.", severity="warning")
            return
        self.run_worker(self._load_image(path), group="image")

    def action_clear_image(self) -> None:
        self.controller.clear_image()
        self.query_one("#image-path", Input).value = ""

    async def _load_image(self, path: str) -> None:
        try:
            image = await load_image_file(path)
        except InputValidationError as exc:
            self.notify(str(exc), title="Image not loaded", severity="error")
            return
        self.controller.load_image(image)
        self.query_one("#mode-image", RadioButton).value = True
