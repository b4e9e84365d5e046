"""Application entry point and setup for the Gieok memory game."""

import logging
import sys

from PySide6.QtGui import QFont, QGuiApplication
from PySide6.QtWidgets import QApplication

from gieok.core.config import load_config
from gieok.core.session import GameSession
from gieok.core.storage import JsonFileStore
from gieok.ui.main_window import MainWindow
from gieok.ui.scheduler import QtScheduler
from gieok.ui.speech import QtSpeechAnnouncer


def configure_logging() -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def apply_application_font(app: QApplication) -> None:
    """Use a large default font with emoji fallbacks so card symbols render."""
    app_font = QFont()
    app_font.setFamilies(
        [
            app_font.defaultFamily(),
            "Noto Color Emoji",  # Linux (common)
            "Segoe UI Emoji",  # Windows
            "Apple Color Emoji",  # macOS
        ]
    )
    app_font.setPointSize(14)
    app.setFont(app_font)
    QGuiApplication.setFont(app_font)


def run() -> None:
    """Load the configuration, restore the saved session and show the main window."""
    configure_logging()
    app = QApplication(sys.argv)
    app.setApplicationName("Gieok")
    app.setApplicationDisplayName("기억력 매칭 게임")

    apply_application_font(app)

    config = load_config()
    store = JsonFileStore()
    session = GameSession(
        config,
        store,
        QtScheduler(app),
        announcer=QtSpeechAnnouncer(app),
    )

    window = MainWindow(session)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    run()
