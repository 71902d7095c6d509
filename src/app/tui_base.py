from __future__ import annotations

import pyperclip
from textual import events
from textual.app import App, ComposeResult, ScreenStackError
from textual.binding import Binding
from textual.widget import Widget
from textual.widgets import Input, TextArea
from textual.widgets._header import Header, HeaderClock, HeaderClockSpace, HeaderTitle

COPY_HINT_MESSAGE = "Select text with the mouse, then press Ctrl+C to copy."


class CopySupportApp(App[None]):
    """Textual app that copies the selection, or a fallback text, with Ctrl+C."""

    BINDINGS = [
        Binding("ctrl+c", "copy_selection", "Copy", key_display="Ctrl+C", priority=True),
        Binding("ctrl+q", "quit", "Quit", key_display="Ctrl+Q", priority=True),
    ]

    def copy_fallback_text(self) -> str | None:
        """Text copied when nothing is selected. Subclasses override."""
        return None

    def action_copy_selection(self) -> None:
        text = self._selected_text()
        what = "Selection"
        if not text:
            text = self.copy_fallback_text()
            what = "Score"
        if not text:
            self.notify(COPY_HINT_MESSAGE, timeout=2.0)
            return
        if self._copy_text_to_clipboard(text):
            self.notify(f"{what} copied to clipboard.", timeout=2.0)
        else:
            self.notify("Clipboard copy failed; no clipboard backend found.", timeout=2.0)

    def _selected_text(self) -> str | None:
        target = self.focused
        if isinstance(target, (TextArea, Input)) and target.selected_text:
            return target.selected_text
        try:
            return self.screen.get_selected_text() or None
        except ScreenStackError:
            return None

    def _copy_text_to_clipboard(self, text: str) -> bool:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException:
            return False
        # OSC 52 as well, for terminals attached over ssh.
        self.copy_to_clipboard(text)
        return True


class HeaderControl(Widget):
    """One clickable glyph in the header that runs an app action."""

    DEFAULT_CSS = """
    HeaderControl {
        dock: left;
        height: 1;
        width: 3;
        content-align: center middle;
        text-style: bold;
    }
    HeaderControl:hover {
        background: $foreground 10%;
    }
    #tl-close {
        color: #ff5f57;
    }
    #tl-export {
        color: #febc2e;
    }
    #tl-menu {
        color: #28c840;
    }
    """

    def __init__(self, icon: str, action: str, *, id: str, tooltip: str | None = None) -> None:
        super().__init__(id=id)
        self.glyph = icon
        self.action_name = action
        if tooltip:
            self.tooltip = tooltip

    def render(self) -> str:
        return self.glyph

    async def on_click(self, event: events.Click) -> None:
        event.stop()
        await self.run_action(f"app.{self.action_name}")


class ChromeHeader(Header):
    """Header with close, export and command palette controls on the left."""

    def compose(self) -> ComposeResult:
        yield HeaderControl("✕", "quit", id="tl-close", tooltip="Quit")
        yield HeaderControl("⤓", "export", id="tl-export", tooltip="Export .abc")
        yield HeaderControl("●", "command_palette", id="tl-menu", tooltip="Commands")
        yield HeaderTitle()
        yield (
            HeaderClock().data_bind(Header.time_format) if self._show_clock else HeaderClockSpace()
        )
