"""Editing, copying and propagating the attributes of the selected vehicle."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from rve_core.model import CarState, RideType
from rve_core.vehicle import EntityNotFoundError, RideVehicle
from rve_core.world import Viewport, WorldQuery
from rve_editor.core.config_store import ConfigModel
from rve_editor.core.observable import Observable
from rve_editor.core.selector import VehicleSelector
from rve_editor.core.settings import SOUND_RANGE_IDS, VehicleSettings, capture_settings

log = logging.getLogger(__name__)


def clamp(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, int(value)))


class VehicleEditor:
    """
    Tracks the vehicle the selector reports as current and exposes one
    observable per editable attribute.

    Every setter clamps its input to the attribute's domain, writes it through
    the vehicle handle and republishes what the simulation actually stored.
    Setters do nothing when no vehicle is selected or the vehicle vanished.
    """

    def __init__(
        self,
        selector: VehicleSelector,
        world: WorldQuery,
        config: Optional[ConfigModel] = None,
        viewport: Optional[Viewport] = None,
    ) -> None:
        self._selector = selector
        self._world = world
        self._config = config or ConfigModel()
        self._viewport = viewport

        self.ride_type_list: Observable[List[RideType]] = Observable([])
        self.ride_type_index: Observable[int] = Observable()
        self.variant: Observable[int] = Observable()
        self.track_progress: Observable[int] = Observable()
        self.seats: Observable[int] = Observable()
        self.mass: Observable[int] = Observable()
        self.powered_acceleration: Observable[int] = Observable()
        self.powered_max_speed: Observable[int] = Observable()
        self.sound_range: Observable[int] = Observable()
        self.is_powered: Observable[bool] = Observable(False)

        self._ride_type: Optional[RideType] = None

        self.ride_type_list.set(list(world.list_ride_types()))
        selector.vehicle.subscribe(self._on_vehicle_selected)

    @property
    def ride_type(self) -> Optional[RideType]:
        return self._ride_type

    @property
    def config(self) -> ConfigModel:
        return self._config

    def update_config(self, cfg: ConfigModel) -> None:
        log.debug(
            f"Limits updated: seats {cfg.max_seats}, mass {cfg.max_mass}, powered {cfg.max_powered}"
        )
        self._config = cfg

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------
    def _on_vehicle_selected(self, vehicle: Optional[RideVehicle]) -> None:
        if vehicle is None:
            log.debug("No vehicle selected")
            self._ride_type = None
            self.is_powered.set(False)
            return
        car = vehicle.try_get_car()
        if car is None:
            log.debug(f"Selected vehicle {vehicle.entity_id} no longer exists")
            self.is_powered.set(False)
            return
        self._publish(car)

    def _publish(self, car: CarState) -> None:
        ride_types = list(self._world.list_ride_types())
        self.ride_type_list.set(ride_types)

        ride_type_index = None
        self._ride_type = None
        for index, ride_type in enumerate(ride_types):
            if ride_type.type_id == car.ride_type_id:
                ride_type_index = index
                self._ride_type = ride_type
                break

        self.ride_type_index.set(ride_type_index)
        self.variant.set(car.variant)
        self.track_progress.set(car.track_progress)
        self.seats.set(car.seats)
        self.mass.set(car.mass)
        self.powered_acceleration.set(car.powered_acceleration)
        self.powered_max_speed.set(car.powered_max_speed)
        self.sound_range.set(car.sound_range)
        self.is_powered.set(
            self._ride_type is not None and self._ride_type.is_powered(car.variant)
        )

    def refresh(self) -> None:
        """Re-read the live attributes of the current vehicle (called every tick)."""
        selector = self._selector
        vehicle = selector.vehicle.get()
        if vehicle is not None and not vehicle.exists():
            log.info(f"Vehicle {vehicle.entity_id} disappeared; revalidating selection")
            selector.revalidate()
        elif selector.is_stale():
            log.info("Train or vehicle list changed; revalidating selection")
            selector.revalidate()

        vehicle = selector.vehicle.get()
        if vehicle is None:
            return
        car = vehicle.try_get_car()
        if car is not None:
            self._publish(car)

    def _current_vehicle(self) -> Optional[RideVehicle]:
        vehicle = self._selector.vehicle.get()
        if vehicle is None:
            return None
        if not vehicle.exists():
            log.debug(f"Vehicle {vehicle.entity_id} no longer exists")
            return None
        return vehicle

    def _mutate(self, description: str, action: Callable[[RideVehicle], None]) -> None:
        vehicle = self._current_vehicle()
        if vehicle is None:
            log.debug(f"{description} ignored: no vehicle selected")
            return
        try:
            action(vehicle)
            car = vehicle.get_car()
        except EntityNotFoundError:
            log.warning(f"{description} skipped: vehicle {vehicle.entity_id} vanished")
            return
        self._publish(car)

    # ------------------------------------------------------------------
    # Single attribute setters
    # ------------------------------------------------------------------
    def set_ride_type(self, index: int) -> None:
        ride_types = self.ride_type_list.get() or []
        if not ride_types:
            log.debug("Set ride type ignored: no ride types available")
            return
        ride_type = ride_types[clamp(index, 0, len(ride_types) - 1)]

        def action(vehicle: RideVehicle) -> None:
            vehicle.set_ride_type(ride_type.type_id)
            car = vehicle.get_car()
            if car.variant >= ride_type.variant_count:
                vehicle.set_variant(ride_type.variant_count - 1)

        self._mutate(f"Set ride type {ride_type.type_id}", action)

    def set_variant(self, variant: int) -> None:
        def action(vehicle: RideVehicle) -> None:
            vehicle.set_variant(clamp(variant, 0, self._variant_maximum(vehicle)))

        self._mutate(f"Set variant {variant}", action)

    def move(self, distance: int) -> None:
        """Move the vehicle ``distance`` steps along the track (wraps at 32 bits)."""
        self._mutate(f"Move by {distance}", lambda vehicle: vehicle.travel_by(distance))

    def set_seat_count(self, seats: int) -> None:
        self._mutate(
            f"Set seats {seats}",
            lambda vehicle: vehicle.set_seats(clamp(seats, 0, self._config.max_seats)),
        )

    def set_mass(self, mass: int) -> None:
        self._mutate(
            f"Set mass {mass}",
            lambda vehicle: vehicle.set_mass(clamp(mass, 0, self._config.max_mass)),
        )

    def set_powered_acceleration(self, value: int) -> None:
        self._mutate(
            f"Set powered acceleration {value}",
            lambda vehicle: vehicle.set_powered_acceleration(
                clamp(value, 0, self._config.max_powered)
            ),
        )

    def set_powered_maximum_speed(self, value: int) -> None:
        self._mutate(
            f"Set powered max speed {value}",
            lambda vehicle: vehicle.set_powered_max_speed(
                clamp(value, 0, self._config.max_powered)
            ),
        )

    def set_sound_range(self, sound_range: int) -> None:
        if sound_range not in SOUND_RANGE_IDS:
            log.warning(f"Unsupported sound range id {sound_range}; ignored")
            return
        self._mutate(
            f"Set sound range {sound_range}",
            lambda vehicle: vehicle.set_sound_range(sound_range),
        )

    def _variant_maximum(self, vehicle: RideVehicle) -> int:
        ride_type = vehicle.ride_type()
        if ride_type is None:
            return 0
        return ride_type.variant_count - 1

    # ------------------------------------------------------------------
    # Capture / apply / propagate
    # ------------------------------------------------------------------
    def get_settings(self) -> Optional[VehicleSettings]:
        vehicle = self._current_vehicle()
        if vehicle is None:
            return None
        return capture_settings(vehicle)

    def apply_settings(self, settings: VehicleSettings) -> bool:
        """Apply ``settings`` to the selected vehicle only."""
        vehicle = self._current_vehicle()
        if vehicle is None:
            log.debug("Apply settings ignored: no vehicle selected")
            return False
        applied = self._apply_to_vehicle(vehicle, settings)
        self.refresh()
        return applied

    def apply_settings_to_current_train(
        self, settings: VehicleSettings, start: int, end: Optional[int] = None
    ) -> int:
        """Apply ``settings`` to the vehicles of the current train in ``[start, end)``.

        Bounds are clamped to the train length. Returns how many vehicles were
        updated; vanished vehicles are skipped.
        """
        vehicles = self._selector.vehicles_on_train.get() or []
        length = len(vehicles)
        stop = length if end is None else max(0, min(end, length))
        begin = max(0, min(start, stop))
        log.debug(f"Apply settings to vehicles [{begin}, {stop}) of {length}")
        applied = self._apply_to_range(vehicles[begin:stop], settings)
        self.refresh()
        return applied

    def apply_settings_to_all_trains(self, settings: VehicleSettings) -> int:
        """Apply ``settings`` to every vehicle of every train on the current ride."""
        ride = self._selector.ride.get()
        if ride is None:
            log.debug("Apply to all trains ignored: no ride selected")
            return 0
        applied = 0
        for train in self._selector.trains_on_ride.get() or []:
            vehicles = self._world.list_vehicles(ride.ride_id, train.index)
            applied += self._apply_to_range(vehicles, settings)
        log.debug(f"Applied settings to {applied} vehicle(s) on ride [{ride.ride_id}]")
        self.refresh()
        return applied

    def _apply_to_range(self, vehicles: Sequence[RideVehicle], settings: VehicleSettings) -> int:
        applied = 0
        for vehicle in vehicles:
            if self._apply_to_vehicle(vehicle, settings):
                applied += 1
        return applied

    def _apply_to_vehicle(self, vehicle: RideVehicle, settings: VehicleSettings) -> bool:
        cfg = self._config
        try:
            # Ride type first: it decides the legal variant range.
            ride_type = vehicle.store.get_ride_type(settings.ride_type_id)
            if ride_type is not None:
                vehicle.set_ride_type(ride_type.type_id)
            vehicle.set_variant(clamp(settings.variant, 0, self._variant_maximum(vehicle)))
            vehicle.set_seats(clamp(settings.seats, 0, cfg.max_seats))
            vehicle.set_mass(clamp(settings.mass, 0, cfg.max_mass))
            vehicle.set_powered_acceleration(clamp(settings.powered_acceleration, 0, cfg.max_powered))
            vehicle.set_powered_max_speed(clamp(settings.powered_max_speed, 0, cfg.max_powered))
            if settings.sound_range in SOUND_RANGE_IDS:
                vehicle.set_sound_range(settings.sound_range)
            current = vehicle.get_car().track_progress
            if current != settings.track_progress:
                vehicle.travel_by(settings.track_progress - current)
        except EntityNotFoundError:
            log.warning(f"Vehicle {vehicle.entity_id} vanished; skipped")
            return False
        return True

    # ------------------------------------------------------------------
    def locate(self) -> bool:
        """Scroll the main viewport to the selected vehicle."""
        vehicle = self._current_vehicle()
        if vehicle is None or self._viewport is None:
            return False
        car = vehicle.try_get_car()
        if car is None:
            return False
        self._viewport.scroll_to(car.position)
        return True
