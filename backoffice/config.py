"""Runtime configuration defaults for persistence, slots and printing."""

from __future__ import annotations

import os

DB_PATH = os.environ.get("BACKOFFICE_DB_PATH", "data/backoffice.db")
DEBUG_LOG_PATH = "/tmp/backoffice-debug.log"

# Inclusive "HH:MM" bounds. Windows must be contiguous at minute granularity.
SLOT_WINDOWS: dict[str, tuple[str, str]] = {
    "morning": ("10:00", "14:30"),
    "afternoon": ("14:31", "18:30"),
    "evening": ("18:31", "23:30"),
}

# Maximum guests per slot until staff store their own values.
DEFAULT_SLOT_CAPACITIES: dict[str, int] = {
    "morning": 100,
    "afternoon": 80,
    "evening": 100,
}

CURRENCY_SYMBOL = "€"

PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 384
PRINTER_FONT_SIZE = 40
PRINTER_FONT_PATH = "/System/Library/Fonts/SFNS.ttf"
PRINTER_LEFT_INDENT_PX = 16
PRINTER_TAIL_SPACER_PX = 70
