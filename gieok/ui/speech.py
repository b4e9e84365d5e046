"""Text-to-speech announcer using Qt's speech engine."""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QLocale, QObject
from PySide6.QtTextToSpeech import QTextToSpeech

from gieok.core.speech import LOCALE

logger = logging.getLogger(__name__)


class QtSpeechAnnouncer:
    """Speaks Korean feedback; silently does nothing when no engine is available."""

    def __init__(self, parent: Optional[QObject] = None) -> None:
        self._engine: Optional[QTextToSpeech] = None
        engine = QTextToSpeech(parent)
        if engine.state() == QTextToSpeech.State.Error:
            logger.warning("Text-to-speech engine failed to start: %s", engine.errorString())
            return
        locale = QLocale(LOCALE)
        if locale in engine.availableLocales():
            engine.setLocale(locale)
        else:
            logger.warning("No %s voice installed; using the engine default", LOCALE)
        self._engine = engine

    @property
    def available(self) -> bool:
        return self._engine is not None

    def announce(self, text: str) -> None:
        if self._engine is None:
            return
        self._engine.enqueue(text)
