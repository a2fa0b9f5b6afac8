"""Single-field entry modal screen."""

from __future__ import annotations

from typing import Callable

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

Validator = Callable[[str], str | None]


def digits_only(char: str) -> bool:
    return char.isdigit()


def clock_chars(char: str) -> bool:
    return char.isdigit() or char == ":"


def decimal_chars(char: str) -> bool:
    return char.isdigit() or char in {".", ","}


def any_printable(char: str) -> bool:
    return char.isprintable()


class EntryModal(ModalScreen[str | None]):
    """Prompt for one value; dismisses with the text or None on cancel."""

    CSS = """
    EntryModal {
        align: center middle;
        background: $background 60%;
    }

    #entry-dialog {
        width: 56;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #entry-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #entry-prompt {
        color: white;
        margin-bottom: 1;
    }

    #entry-value {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #entry-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #entry-help {
        color: #dddddd;
    }
    """

    def __init__(
        self,
        title: str,
        prompt: str,
        accepts: Callable[[str], bool] = any_printable,
        validate: Validator | None = None,
        initial: str = "",
        max_length: int = 40,
    ) -> None:
        super().__init__()
        self.title_text = title
        self.prompt_text = prompt
        self.accepts_char = accepts
        self.validator = validate
        self.value = initial
        self.max_length = max_length
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="entry-dialog"):
            yield Static(self.title_text, id="entry-title")
            yield Static(self.prompt_text, id="entry-prompt")
            yield Static(id="entry-value")
            yield Static(id="entry-error")
            yield Static("Enter confirm. Backspace delete. Esc/Ctrl+C cancel.", id="entry-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            self._confirm()
            event.stop()
            return

        if event.key == "backspace":
            if self.value:
                self.value = self.value[:-1]
                self.error = ""
                self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character and self.accepts_char(event.character):
            if len(self.value) < self.max_length:
                self.value += event.character
            self.error = ""
            self._refresh_content()
            event.stop()

    def _confirm(self) -> None:
        value = self.value.strip()
        if not value:
            self.error = "A value is required."
            self._refresh_content()
            return

        if self.validator is not None:
            error = self.validator(value)
            if error:
                self.error = error
                self._refresh_content()
                return

        self.dismiss(value)

    def _refresh_content(self) -> None:
        value_widget = self.query_one("#entry-value", Static)
        error_widget = self.query_one("#entry-error", Static)
        value_widget.update(self.value or "")
        error_widget.update(self.error or "")
