"""Menu selection modal screen."""

from __future__ import annotations

from typing import Callable

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static

from backoffice.engine import apply_preset_menu, clear_menu, toggle_menu_item
from backoffice.errors import CatalogError
from backoffice.models import BookingDraft, MenuCatalog, MenuItem
from backoffice.rendering import format_category_counter, format_kind_badge, format_money, format_totals


class MenuModal(ModalScreen[None]):
    """Centered modal to browse the catalog and toggle items on a draft."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("q", "close", "Close"),
        ("ctrl+c", "close", "Close"),
        ("j", "move_cursor(1)", "Next"),
        ("k", "move_cursor(-1)", "Previous"),
        ("up", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("enter", "toggle_current", "Toggle"),
        ("space", "toggle_current", "Toggle"),
        ("x", "clear", "Clear menu"),
    ]

    CSS = """
    MenuModal {
        align: center middle;
        background: $background 60%;
    }

    #menu-dialog {
        width: 72;
        height: 90%;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #menu-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #menu-body {
        height: 1fr;
        color: white;
    }

    #menu-notice {
        margin-top: 1;
        color: #ffb3b3;
    }

    #menu-totals {
        margin-top: 1;
        color: white;
    }

    #menu-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    cursor_index = reactive(0)

    def __init__(self, draft: BookingDraft, catalog: MenuCatalog, on_change: Callable[[], None]) -> None:
        super().__init__()
        self.draft = draft
        self.catalog = catalog
        self.on_change = on_change
        self.notice = ""

    def compose(self) -> ComposeResult:
        with Container(id="menu-dialog"):
            yield Static("Menu", id="menu-title")
            yield Static(id="menu-body")
            yield Static(id="menu-notice")
            yield Static(id="menu-totals")
            yield Static(id="menu-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        # Digit keys apply the matching preset menu.
        if not (event.is_printable and event.character and event.character.isdigit()):
            return
        idx = int(event.character) - 1
        if 0 <= idx < len(self.catalog.presets):
            preset = self.catalog.presets[idx]
            try:
                apply_preset_menu(self.draft, preset.preset_id, self.catalog)
            except CatalogError as exc:
                self.notice = str(exc)
            else:
                self.notice = f"Applied {preset.label}"
            self._refresh_content()
        event.stop()

    def action_close(self) -> None:
        self.dismiss()
        self.on_change()

    def action_move_cursor(self, delta: int) -> None:
        items = self._items()
        if not items:
            return
        self.cursor_index = (self.cursor_index + delta) % len(items)
        self._refresh_content()

    def action_toggle_current(self) -> None:
        items = self._items()
        if not items:
            return
        item = items[self.cursor_index]
        result = toggle_menu_item(self.draft, item, self.catalog)
        if result.rejected and result.reason is not None:
            self.notice = result.reason.message
        elif result.deselected:
            self.notice = f"{', '.join(old.name for old in result.deselected)} replaced by {item.name}"
        else:
            self.notice = ""
        self._refresh_content()

    def action_clear(self) -> None:
        clear_menu(self.draft)
        self.notice = "Menu cleared"
        self._refresh_content()

    def _items(self) -> list[MenuItem]:
        rows: list[MenuItem] = []
        for category in self.catalog.categories:
            rows.extend(self.catalog.items_in(category.category_id))
        return rows

    def _refresh_content(self) -> None:
        body = self.query_one("#menu-body", Static)
        notice = self.query_one("#menu-notice", Static)
        totals = self.query_one("#menu-totals", Static)
        help_text = self.query_one("#menu-help", Static)

        items = self._items()
        if self.cursor_index >= len(items):
            self.cursor_index = max(0, len(items) - 1)
        current = items[self.cursor_index] if items else None

        content = Text(style="white")
        content.append_text(format_kind_badge(self.draft.kind))
        content.append(f" {self.draft.kind.label}, {self.draft.guest_count} pax")
        for category in self.catalog.categories:
            content.append(f"\n\n{category.name} ", style="bold")
            content.append(format_category_counter(category, self.draft.selection), style="dim")
            for item in self.catalog.items_in(category.category_id):
                pointer = "➤ " if item == current else "  "
                is_checked = item in self.draft.selection
                checked = "[x]" if is_checked else "[ ]"
                item_style = "bold white" if is_checked else "white"
                content.append(f"\n{pointer}{checked} {item.name} ", style=item_style)
                content.append(format_money(item.price), style="dim")

        body.update(content)
        notice.update(self.notice)
        if self.draft.totals is not None:
            totals.update(format_totals(self.draft.totals, self.draft.guest_count))
        presets = " ".join(f"{idx + 1}={preset.label}" for idx, preset in enumerate(self.catalog.presets))
        help_text.update(f"J/K/↑/↓ move, Enter toggle, X clear, Esc/q close\nPresets: {presets}")
