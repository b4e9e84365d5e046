from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QPushButton,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from gieok.core import speech
from gieok.core.round import RoundStatus
from gieok.core.session import GameEvent, GameSession
from gieok.ui.colors import GameColors, blend_hex
from gieok.ui.models import CardView, card_views, grid_columns, history_lines


def _panel() -> QFrame:
    panel = QFrame()
    panel.setObjectName("panel")
    panel.setStyleSheet(
        f"""
        QFrame#panel {{
            background: {GameColors.PANEL_BG};
            border-radius: 16px;
        }}
        """
    )
    return panel


def _stat_label() -> QLabel:
    label = QLabel("")
    label.setStyleSheet(f"color: {GameColors.TEXT_PRIMARY}; font-size: 18px;")
    return label


class MainWindow(QMainWindow):
    """Single-screen memory game: controls, card grid and recent results.

    The window only renders session snapshots and forwards clicks; every rule
    lives in :class:`GameSession`. Large buttons and spoken feedback keep the
    game usable for older players.
    """

    def __init__(self, session: GameSession) -> None:
        super().__init__()
        self._session = session
        self._card_buttons: list[QPushButton] = []

        self._level_label: Optional[QLabel] = None
        self._pairs_label: Optional[QLabel] = None
        self._time_label: Optional[QLabel] = None
        self._moves_label: Optional[QLabel] = None
        self._matched_label: Optional[QLabel] = None
        self._feedback_label: Optional[QLabel] = None
        self._difficulty_combo: Optional[QComboBox] = None
        self._voice_checkbox: Optional[QCheckBox] = None
        self._card_grid: Optional[QGridLayout] = None
        self._history_list: Optional[QListWidget] = None
        self._history_empty_label: Optional[QLabel] = None

        self._build_ui()
        self._unsubscribe = self._session.subscribe(self._on_event)
        self._rebuild_cards()
        self._refresh_status()
        self._refresh_history()

    def _build_ui(self) -> None:
        """Construct header, controls, card grid and history panel."""
        self.setWindowTitle("기억력 매칭 게임")
        self.setMinimumSize(900, 760)
        self.setStyleSheet(
            f"""
            QMainWindow {{
                background: qlineargradient(x1:0, y1:0, x2:1, y2:1,
                    stop:0 {GameColors.BG_TOP}, stop:1 {GameColors.BG_BOTTOM});
            }}
            """
        )

        root = QWidget()
        layout = QVBoxLayout(root)
        layout.setContentsMargins(24, 24, 24, 24)
        layout.setSpacing(16)
        self.setCentralWidget(root)

        header = QHBoxLayout()
        title = QLabel("기억력 매칭 게임")
        title.setStyleSheet(f"color: {GameColors.TITLE}; font-size: 34px; font-weight: 900;")
        header.addWidget(title, 1)
        level_col = QVBoxLayout()
        self._level_label = QLabel("")
        self._pairs_label = QLabel("")
        for label in (self._level_label, self._pairs_label):
            label.setStyleSheet(f"color: {GameColors.TEXT_SECONDARY}; font-size: 14px;")
            label.setAlignment(Qt.AlignRight)
            level_col.addWidget(label)
        header.addLayout(level_col)
        layout.addLayout(header)

        controls = _panel()
        controls_row = QHBoxLayout(controls)
        controls_row.setContentsMargins(16, 16, 16, 16)
        controls_row.setSpacing(16)
        self._time_label = _stat_label()
        self._moves_label = _stat_label()
        self._matched_label = _stat_label()
        for label in (self._time_label, self._moves_label, self._matched_label):
            controls_row.addWidget(label)
        controls_row.addStretch(1)

        new_game = QPushButton("새 게임")
        new_game.setAccessibleName("새 게임 시작")
        new_game.setCursor(Qt.PointingHandCursor)
        new_game.setStyleSheet(
            f"""
            QPushButton {{
                background: {GameColors.PRIMARY};
                color: white;
                border: none;
                border-radius: 12px;
                padding: 8px 18px;
                font-size: 18px;
            }}
            QPushButton:hover {{ background: {GameColors.PRIMARY_DARK}; }}
            """
        )
        new_game.clicked.connect(self._session.start_new_round)
        controls_row.addWidget(new_game)

        self._difficulty_combo = QComboBox()
        self._difficulty_combo.setAccessibleName("난이도 선택")
        self._difficulty_combo.setStyleSheet("font-size: 18px; padding: 6px 10px;")
        for level in self._session.levels:
            self._difficulty_combo.addItem(f"{level.key} ({level.pair_count}쌍)")
        self._difficulty_combo.setCurrentIndex(self._session.level_index)
        self._difficulty_combo.currentIndexChanged.connect(self._on_difficulty_chosen)
        controls_row.addWidget(self._difficulty_combo)

        self._voice_checkbox = QCheckBox("음성안내")
        self._voice_checkbox.setStyleSheet("font-size: 14px;")
        self._voice_checkbox.setChecked(self._session.voice_enabled)
        self._voice_checkbox.toggled.connect(self._session.set_voice_enabled)
        controls_row.addWidget(self._voice_checkbox)
        layout.addWidget(controls)

        self._feedback_label = QLabel("")
        self._feedback_label.setAlignment(Qt.AlignCenter)
        self._feedback_label.setStyleSheet(f"color: {GameColors.TITLE}; font-size: 20px; font-weight: 700;")
        layout.addWidget(self._feedback_label)

        grid_host = QWidget()
        self._card_grid = QGridLayout(grid_host)
        self._card_grid.setSpacing(12)
        layout.addWidget(grid_host, 1)

        history_panel = _panel()
        history_layout = QVBoxLayout(history_panel)
        history_layout.setContentsMargins(16, 16, 16, 16)
        history_title = QLabel("최근 성과")
        history_title.setStyleSheet(f"color: {GameColors.TEXT_PRIMARY}; font-size: 20px; font-weight: 700;")
        history_layout.addWidget(history_title)
        self._history_empty_label = QLabel("아직 기록이 없습니다. 게임을 시작해 보세요!")
        self._history_empty_label.setStyleSheet(f"color: {GameColors.TEXT_SECONDARY}; font-size: 14px;")
        history_layout.addWidget(self._history_empty_label)
        self._history_list = QListWidget()
        self._history_list.setMaximumHeight(180)
        self._history_list.setStyleSheet(
            f"""
            QListWidget {{ border: none; color: {GameColors.TEXT_SECONDARY}; font-size: 14px; }}
            QListWidget::item {{
                background: {GameColors.HISTORY_ITEM_BG};
                border: 1px solid {GameColors.CARD_BORDER};
                border-radius: 8px;
                margin: 3px 0;
                padding: 6px;
            }}
            """
        )
        history_layout.addWidget(self._history_list)
        hint = QLabel("힌트: 음성안내를 켜면 더 편리합니다.")
        hint.setStyleSheet(f"color: {GameColors.TEXT_MUTED}; font-size: 14px;")
        history_layout.addWidget(hint)
        layout.addWidget(history_panel)

        footer = QLabel("© 메모리 매칭 게임 — 큰 글씨와 간단한 조작으로 설계되었습니다.")
        footer.setAlignment(Qt.AlignCenter)
        footer.setStyleSheet(f"color: {GameColors.TEXT_MUTED}; font-size: 11px;")
        layout.addWidget(footer)

    def _rebuild_cards(self) -> None:
        """Recreate one button per card for the current deck."""
        grid = self._card_grid
        if grid is None:
            return
        for button in self._card_buttons:
            grid.removeWidget(button)
            button.deleteLater()
        self._card_buttons = []

        snapshot = self._session.round_state
        columns = grid_columns(snapshot.level.pair_count)
        for view in card_views(snapshot):
            button = QPushButton()
            button.setAccessibleName(view.accessible_name)
            button.setCursor(Qt.PointingHandCursor)
            button.setMinimumSize(90, 120)
            button.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
            button.clicked.connect(lambda _checked=False, i=view.index: self._session.select_tile(i))
            grid.addWidget(button, view.index // columns, view.index % columns)
            self._card_buttons.append(button)
        self._refresh_cards()

    def _refresh_cards(self) -> None:
        for view, button in zip(card_views(self._session.round_state), self._card_buttons):
            button.setText(view.text)
            button.setStyleSheet(self._card_style(view))

    def _card_style(self, view: CardView) -> str:
        if view.matched:
            background = GameColors.CARD_MATCHED
            border = blend_hex(GameColors.CARD_MATCHED, GameColors.PRIMARY, 0.3)
        elif view.face_up:
            background = GameColors.CARD_FACE
            border = GameColors.CARD_BORDER
        else:
            background = GameColors.CARD_BACK
            border = blend_hex(GameColors.CARD_BACK, GameColors.PRIMARY_DARK, 0.4)
        font_size = 44 if view.face_up else 20
        color = GameColors.TEXT_PRIMARY if view.face_up else "white"
        return f"""
            QPushButton {{
                background: {background};
                color: {color};
                border: 3px solid {border};
                border-radius: 16px;
                font-size: {font_size}px;
            }}
            QPushButton:focus {{ border-color: {GameColors.PRIMARY}; }}
        """

    def _refresh_status(self) -> None:
        snapshot = self._session.round_state
        level = snapshot.level
        if self._level_label is not None:
            self._level_label.setText(f"난이도: {level.key}")
        if self._pairs_label is not None:
            self._pairs_label.setText(f"쌍 수: {level.pair_count}")
        if self._time_label is not None:
            self._time_label.setText(f"시간: {snapshot.elapsed_seconds}s")
        if self._moves_label is not None:
            self._moves_label.setText(f"시도: {snapshot.moves}")
        if self._matched_label is not None:
            self._matched_label.setText(f"맞춘 쌍: {snapshot.matched_pairs}/{level.pair_count}")

    def _refresh_history(self) -> None:
        if self._history_list is None or self._history_empty_label is None:
            return
        self._history_list.clear()
        history = self._session.history
        self._history_empty_label.setVisible(not history)
        self._history_list.setVisible(bool(history))
        for record in reversed(history):
            self._history_list.addItem(QListWidgetItem("\n".join(history_lines(record))))

    def _sync_controls(self) -> None:
        if self._difficulty_combo is not None:
            self._difficulty_combo.blockSignals(True)
            self._difficulty_combo.setCurrentIndex(self._session.level_index)
            self._difficulty_combo.blockSignals(False)
        if self._voice_checkbox is not None:
            self._voice_checkbox.blockSignals(True)
            self._voice_checkbox.setChecked(self._session.voice_enabled)
            self._voice_checkbox.blockSignals(False)

    def _set_feedback(self, text: str) -> None:
        if self._feedback_label is not None:
            self._feedback_label.setText(text)

    def _on_difficulty_chosen(self, index: int) -> None:
        if index != self._session.level_index:
            self._session.set_difficulty(index)

    def _on_event(self, event: GameEvent) -> None:
        """Re-render whatever the event touched."""
        if event is GameEvent.ROUND_STARTED:
            self._sync_controls()
            self._rebuild_cards()
            self._refresh_status()
        elif event is GameEvent.TILE_REVEALED:
            self._set_feedback("")
            self._refresh_cards()
            self._refresh_status()
        elif event is GameEvent.DIFFICULTY_RAISED:
            self._set_feedback(speech.DIFFICULTY_RAISED)
        elif event is GameEvent.DIFFICULTY_LOWERED:
            self._set_feedback(speech.DIFFICULTY_LOWERED)
        elif event is GameEvent.TICK:
            self._refresh_status()
        elif event is GameEvent.VOICE_TOGGLED:
            self._sync_controls()
        elif event in (GameEvent.ROUND_COMPLETED, GameEvent.ROUND_TIMED_OUT):
            snapshot = self._session.round_state
            if snapshot.status is RoundStatus.COMPLETE:
                self._set_feedback(speech.round_completed(snapshot.elapsed_seconds))
            else:
                self._set_feedback(speech.ROUND_TIMED_OUT)
            self._refresh_cards()
            self._refresh_status()
            self._refresh_history()
        else:
            self._refresh_cards()
            self._refresh_status()

    def closeEvent(self, event: QCloseEvent) -> None:
        """Stop the game timers when closing the app."""
        self._unsubscribe()
        self._session.close()
        super().closeEvent(event)
