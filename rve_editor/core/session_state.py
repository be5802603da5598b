"""Process-scoped editor state that outlives a single editor window."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from rve_editor.core.settings import VehicleSettings

log = logging.getLogger(__name__)


@dataclass
class SessionState:
    """
    - last_ride_id / last_train_index / last_vehicle_index: selection stored
      when the window closes, restored when it opens again
    - copied_settings: the copy/paste buffer
    """
    last_ride_id: Optional[int] = None
    last_train_index: int = 0
    last_vehicle_index: int = 0
    copied_settings: Optional[VehicleSettings] = None

    def remember_selection(
        self,
        ride_id: Optional[int],
        train_index: Optional[int],
        vehicle_index: Optional[int],
    ) -> None:
        self.last_ride_id = ride_id
        self.last_train_index = train_index or 0
        self.last_vehicle_index = vehicle_index or 0
        log.debug(
            f"Remembered selection: ride {ride_id}, train {self.last_train_index}, "
            f"vehicle {self.last_vehicle_index}"
        )

    def copy(self, settings: Optional[VehicleSettings]) -> None:
        self.copied_settings = settings

    def clear_copy(self) -> None:
        self.copied_settings = None

    @property
    def has_copy(self) -> bool:
        return self.copied_settings is not None

    def reset(self) -> None:
        self.last_ride_id = None
        self.last_train_index = 0
        self.last_vehicle_index = 0
        self.copied_settings = None


_SESSION_STATE: Optional[SessionState] = None


def get_session_state() -> SessionState:
    global _SESSION_STATE
    if _SESSION_STATE is None:
        _SESSION_STATE = SessionState()
    return _SESSION_STATE


def reset_session_state() -> None:
    """Clear the shared session state (window globals) between tests."""
    get_session_state().reset()


__all__ = ["SessionState", "get_session_state", "reset_session_state"]
