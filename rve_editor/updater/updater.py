"""
updater.py

EditorUpdater keeps the editor in sync with a park that changes underneath it.
A QTimer fires every ``poll_ms`` and re-reads the selected vehicle; failures
are reported through the `error` signal (str), once per distinct message.
"""

import logging
from typing import Callable, Optional

from PyQt5 import QtCore

from rve_editor.core.editor import VehicleEditor

log = logging.getLogger(__name__)


class EditorUpdater(QtCore.QObject):
    """
    Polls the editor and emits `refreshed` after each successful tick.

    Usage:
      - create VehicleEditor and EditorUpdater(editor, poll_ms)
      - connect signals: refreshed (), error (str)
      - call start() once an event loop is running, stop() before quitting

    ``advance`` is called before each refresh; the command line uses it to
    step the simulated park.
    """
    refreshed = QtCore.pyqtSignal()
    error = QtCore.pyqtSignal(str)

    def __init__(
        self,
        editor: VehicleEditor,
        poll_ms: int = 250,
        advance: Optional[Callable[[], None]] = None,
    ):
        super().__init__()
        self._editor = editor
        self._advance = advance
        self._poll_ms = max(20, int(poll_ms))
        self._timer: Optional[QtCore.QTimer] = None
        self._running = False
        self._last_error_msg: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def poll_ms(self) -> int:
        return self._poll_ms

    @QtCore.pyqtSlot()
    def start(self):
        if self._running:
            return
        self._running = True
        self._last_error_msg = None
        self._timer = QtCore.QTimer()
        self._timer.setInterval(self._poll_ms)
        self._timer.timeout.connect(self._on_tick)
        self._timer.start()
        log.debug(f"Updater started ({self._poll_ms} ms)")

    @QtCore.pyqtSlot()
    def stop(self):
        self._running = False
        if self._timer is not None:
            self._timer.stop()
            self._timer.deleteLater()
            self._timer = None
            log.debug("Updater stopped")

    @QtCore.pyqtSlot(int)
    def set_poll_interval(self, ms: int):
        """Adjust polling rate dynamically."""
        self._poll_ms = max(20, int(ms))
        if self._timer is not None:
            self._timer.setInterval(self._poll_ms)

    def _on_tick(self):
        if not self._running:
            return
        try:
            if self._advance is not None:
                self._advance()
            self._editor.refresh()
        except Exception as e:
            # Keep polling; the next tick may succeed.
            log.exception("Editor refresh failed")
            self._emit_error_once(f"{type(e).__name__}: {e}")
            return
        self._last_error_msg = None
        self.refreshed.emit()

    def _emit_error_once(self, msg: str) -> None:
        if not msg or self._last_error_msg == msg:
            return
        self._last_error_msg = msg
        self.error.emit(msg)
