"""Entry point for the reservation back-office Textual app."""

from __future__ import annotations

import logging
from pathlib import Path

from backoffice.booking_app import BackofficeApp
from backoffice.config import DEBUG_LOG_PATH


def configure_logging(path: str = DEBUG_LOG_PATH) -> None:
    """Send log records to a file; the terminal belongs to the TUI."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=path,
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    BackofficeApp().run()


if __name__ == "__main__":
    main()
