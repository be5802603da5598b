"""Window-level state of the vehicle editor, kept free of any widget code.

The presenter turns selector/editor observables into the values the window
shows (labels, enabled states, toggle states) and turns button presses into
selector/editor commands, so it can be tested without spinning up a UI.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from rve_core.model import RideSummary, RideType, TrainHandle, describe_ride, describe_ride_type
from rve_core.vehicle import EntityNotFoundError, RideVehicle
from rve_editor.core.config_store import ConfigModel
from rve_editor.core.editor import VehicleEditor
from rve_editor.core.observable import Observable
from rve_editor.core.selector import VehicleSelector
from rve_editor.core.session_state import SessionState, get_session_state
from rve_editor.core.settings import slot_to_sound_range, sound_range_to_slot
from rve_editor.ui.picker import VehiclePicker

log = logging.getLogger(__name__)


StatusCallback = Callable[[str, int], None]

MULTIPLIER_LABELS = ("x1", "x10", "x100")


class VehicleEditorPresenter:
    def __init__(
        self,
        selector: VehicleSelector,
        editor: VehicleEditor,
        picker: Optional[VehiclePicker] = None,
        session: Optional[SessionState] = None,
        config: Optional[ConfigModel] = None,
        status_callback: Optional[StatusCallback] = None,
    ) -> None:
        self._selector = selector
        self._editor = editor
        self._picker = picker
        self._session = session if session is not None else get_session_state()
        self._config = config or editor.config
        self._status = status_callback or (lambda msg, timeout=0: None)
        self._is_open = False

        self.ride_labels: Observable[List[str]] = Observable([])
        self.train_labels: Observable[List[str]] = Observable([])
        self.vehicle_labels: Observable[List[str]] = Observable([])
        self.ride_type_labels: Observable[List[str]] = Observable([])
        self.sound_range_slot: Observable[int] = Observable()

        self.controls_enabled: Observable[bool] = Observable(False)
        self.powered_controls_enabled: Observable[bool] = Observable(False)
        self.copy_pressed: Observable[bool] = Observable(self._session.has_copy)
        self.paste_enabled: Observable[bool] = Observable(self._session.has_copy)
        self.increment: Observable[int] = Observable(1)

        selector.rides_in_park.subscribe(self._on_rides_changed)
        selector.trains_on_ride.subscribe(self._on_trains_changed)
        selector.vehicles_on_train.subscribe(self._on_vehicles_changed)
        selector.vehicle.subscribe(self._on_select_vehicle)
        editor.ride_type_list.subscribe(self._on_ride_types_changed)
        editor.is_powered.subscribe(self._on_powered_changed)
        editor.sound_range.subscribe(self._on_sound_range_changed)

    @property
    def is_open(self) -> bool:
        return self._is_open

    def update_config(self, cfg: ConfigModel) -> None:
        self._config = cfg
        self._on_rides_changed(self._selector.rides_in_park.get())
        self._on_ride_types_changed(self._editor.ride_type_list.get())

    # ------------------------------------------------------------------
    # Window lifecycle
    # ------------------------------------------------------------------
    def show(self) -> None:
        """Open the editor, restoring the last selection when possible."""
        if self._is_open:
            log.debug("Editor is already open")
            return
        log.debug("Editor opened")
        self._is_open = True
        self._selector.reload_ride_list()

        session = self._session
        if self._config.restore_selection and session.last_ride_id is not None:
            rides = self._selector.rides_in_park.get() or []
            for index, ride in enumerate(rides):
                if ride.ride_id == session.last_ride_id:
                    log.debug("Restore previous selection successful")
                    self._selector.select_ride(
                        index, session.last_train_index, session.last_vehicle_index
                    )
                    return
            log.debug("Restore selection failed: ride not found")

        self._selector.select_ride(0)
        if self._selector.vehicle.get() is None:
            self._on_select_vehicle(None)

    def close(self) -> None:
        if not self._is_open:
            return
        log.debug("Editor closed")
        ride = self._selector.ride.get()
        self._session.remember_selection(
            ride.ride_id if ride is not None else None,
            self._selector.train_index,
            self._selector.vehicle_index,
        )
        if self._picker is not None:
            self._picker.cancel()
        self._is_open = False

    # ------------------------------------------------------------------
    # Observable → display state
    # ------------------------------------------------------------------
    def _on_rides_changed(self, rides: Optional[List[RideSummary]]) -> None:
        show_ids = self._config.show_ids
        self.ride_labels.set([describe_ride(r, show_ids) for r in rides or []])

    def _on_trains_changed(self, trains: Optional[List[TrainHandle]]) -> None:
        self.train_labels.set([f"Train {t.index + 1}" for t in trains or []])

    def _on_vehicles_changed(self, vehicles: Optional[List[RideVehicle]]) -> None:
        self.vehicle_labels.set([f"Vehicle {i + 1}" for i in range(len(vehicles or []))])

    def _on_ride_types_changed(self, ride_types: Optional[List[RideType]]) -> None:
        show_ids = self._config.show_ids
        self.ride_type_labels.set([describe_ride_type(t, show_ids) for t in ride_types or []])

    def _on_sound_range_changed(self, sound_range: Optional[int]) -> None:
        if sound_range is None:
            return
        self.sound_range_slot.set(sound_range_to_slot(sound_range))

    def _on_powered_changed(self, powered: Optional[bool]) -> None:
        self.powered_controls_enabled.set(bool(powered) and bool(self.controls_enabled.get()))

    def _on_select_vehicle(self, vehicle: Optional[RideVehicle]) -> None:
        powered = False
        if vehicle is not None:
            try:
                powered = vehicle.is_powered()
            except EntityNotFoundError:
                vehicle = None
        if vehicle is None:
            log.debug("No vehicle selected, disable controls")
        self.controls_enabled.set(vehicle is not None)
        self.powered_controls_enabled.set(powered)

    # ------------------------------------------------------------------
    # Toolbar
    # ------------------------------------------------------------------
    def select_sound_range_slot(self, slot: int) -> None:
        sound_range = slot_to_sound_range(slot)
        if sound_range is None:
            log.debug(f"Sound range slot {slot} out of range")
            return
        self._editor.set_sound_range(sound_range)

    def set_multiplier(self, index: int) -> None:
        index = max(0, min(len(MULTIPLIER_LABELS) - 1, index))
        increment = 10 ** index
        log.debug(f"Updated multiplier to {increment} (index: {index})")
        self.increment.set(increment)

    def locate(self) -> None:
        self._editor.locate()

    def toggle_picker(self, pressed: bool) -> None:
        if self._picker is None:
            self._status("Picker unavailable", 3000)
            return
        self._picker.toggle(pressed)

    def toggle_copy(self, pressed: bool) -> None:
        if pressed:
            settings = self._editor.get_settings()
            self._session.copy(settings)
            if settings is None:
                self._status("Nothing to copy: no vehicle selected", 3000)
        else:
            self._session.clear_copy()
        log.debug(f"Copied: {self._session.has_copy}")
        self.copy_pressed.set(self._session.has_copy)
        self.paste_enabled.set(self._session.has_copy)

    def paste(self) -> bool:
        settings = self._session.copied_settings
        if settings is None:
            return False
        log.debug(f"Paste settings: {settings.as_dict()}")
        return self._editor.apply_settings(settings)

    # ------------------------------------------------------------------
    # Apply to others
    # ------------------------------------------------------------------
    def apply_to_all_vehicles(self) -> int:
        settings = self._editor.get_settings()
        if settings is None:
            return 0
        return self._editor.apply_settings_to_current_train(settings, 0)

    def apply_to_following_vehicles(self) -> int:
        index = self._selector.vehicle_index
        settings = self._editor.get_settings()
        if index is None or settings is None:
            return 0
        return self._editor.apply_settings_to_current_train(settings, index + 1)

    def apply_to_preceding_vehicles(self) -> int:
        index = self._selector.vehicle_index
        settings = self._editor.get_settings()
        if index is None or settings is None:
            return 0
        return self._editor.apply_settings_to_current_train(settings, 0, index)

    def apply_to_all_trains(self) -> int:
        settings = self._editor.get_settings()
        if settings is None:
            return 0
        return self._editor.apply_settings_to_all_trains(settings)
