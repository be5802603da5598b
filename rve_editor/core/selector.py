"""Cascading ride → train → vehicle selection."""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from rve_core.model import RideSummary, TrainHandle
from rve_core.vehicle import RideVehicle
from rve_core.world import WorldQuery
from rve_editor.core.observable import Observable

log = logging.getLogger(__name__)


def resolve_index(index: Optional[int], length: int) -> Optional[int]:
    """Return ``index`` if valid for a list of ``length``, else 0, or None if empty."""
    if length <= 0:
        return None
    if index is None or not (0 <= index < length):
        return 0
    return index


class VehicleSelector:
    """
    Owns the selection state of the editor.

    Each level stores its resolved index first, then publishes its list, then
    the selected item, then cascades into the level below. Subscribers of a
    list therefore never see an index that is out of range for that list.
    """

    def __init__(self, world: WorldQuery) -> None:
        self._world = world

        self.rides_in_park: Observable[List[RideSummary]] = Observable([])
        self.ride: Observable[RideSummary] = Observable()
        self.trains_on_ride: Observable[List[TrainHandle]] = Observable([])
        self.train: Observable[TrainHandle] = Observable()
        self.vehicles_on_train: Observable[List[RideVehicle]] = Observable([])
        self.vehicle: Observable[RideVehicle] = Observable()

        self._ride_index: Optional[int] = None
        self._train_index: Optional[int] = None
        self._vehicle_index: Optional[int] = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def ride_index(self) -> Optional[int]:
        return self._ride_index

    @property
    def train_index(self) -> Optional[int]:
        return self._train_index

    @property
    def vehicle_index(self) -> Optional[int]:
        return self._vehicle_index

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def reload_ride_list(self) -> None:
        rides = list(self._world.list_rides_in_park())
        log.debug(f"Reloaded ride list: {len(rides)} ride(s)")
        self.rides_in_park.set(rides)

    def select_ride(self, ride_index: int, train_index: int = 0, vehicle_index: int = 0) -> bool:
        rides = self.rides_in_park.get() or []
        if not (0 <= ride_index < len(rides)):
            log.debug(f"Ride index {ride_index} out of range ({len(rides)} rides); ignored")
            return False

        ride = rides[ride_index]
        log.debug(f"Select ride {ride_index}: [{ride.ride_id}] {ride.name}")
        self._ride_index = ride_index
        self.ride.set(ride)
        trains = list(self._world.list_trains(ride.ride_id))
        self._apply_trains(ride, trains, train_index, vehicle_index)
        return True

    def select_train(self, train_index: int, vehicle_index: int = 0) -> bool:
        ride = self.ride.get()
        if self._ride_index is None or ride is None:
            log.debug("Select train ignored: no ride selected")
            return False
        trains = list(self._world.list_trains(ride.ride_id))
        self._apply_trains(ride, trains, train_index, vehicle_index)
        return self._train_index is not None

    def select_vehicle(self, vehicle_index: int) -> bool:
        ride = self.ride.get()
        train = self.train.get()
        if ride is None or train is None or self._train_index is None:
            log.debug("Select vehicle ignored: no train selected")
            return False
        vehicles = list(self._world.list_vehicles(ride.ride_id, train.index))
        self._apply_vehicles(vehicles, vehicle_index)
        return self._vehicle_index is not None

    def select_entity(self, entity_id: int) -> bool:
        """Select the vehicle with ``entity_id``; a miss leaves the selection untouched."""
        location = self._world.find_entity(entity_id)
        if location is None:
            log.debug(f"Entity {entity_id} is not part of any ride")
            return False

        rides = self.rides_in_park.get() or []
        for ride_index, ride in enumerate(rides):
            if ride.ride_id == location.ride_id:
                log.debug(
                    f"Entity {entity_id} found: ride {ride_index}, "
                    f"train {location.train_index}, vehicle {location.vehicle_index}"
                )
                return self.select_ride(ride_index, location.train_index, location.vehicle_index)

        log.debug(f"Entity {entity_id} belongs to unlisted ride {location.ride_id}")
        return False

    def revalidate(self) -> None:
        """Re-query the park and repair the selection after external changes."""
        rides = list(self._world.list_rides_in_park())

        # Follow the selected vehicle if it still exists, wherever it moved.
        vehicle = self.vehicle.get()
        location = self._world.find_entity(vehicle.entity_id) if vehicle is not None else None
        if location is not None:
            ride_index = next(
                (i for i, r in enumerate(rides) if r.ride_id == location.ride_id), None
            )
            if ride_index is not None:
                self._ride_index = ride_index
                self.rides_in_park.set(rides)
                self.select_ride(ride_index, location.train_index, location.vehicle_index)
                return

        ride = self.ride.get()
        if ride is None or self._ride_index is None:
            self.rides_in_park.set(rides)
            return

        new_index = next((i for i, r in enumerate(rides) if r.ride_id == ride.ride_id), None)
        if new_index is None:
            log.info(f"Selected ride [{ride.ride_id}] {ride.name} disappeared")
            self.deselect()
            self.rides_in_park.set(rides)
            return

        self._ride_index = new_index
        self.rides_in_park.set(rides)
        self.select_ride(new_index, self._train_index or 0, self._vehicle_index or 0)

    def is_stale(self) -> bool:
        """True when the published train or vehicle list no longer matches the park."""
        ride = self.ride.get()
        if ride is None:
            return False
        trains = list(self._world.list_trains(ride.ride_id))
        if trains != (self.trains_on_ride.get() or []):
            return True
        train = self.train.get()
        if train is None:
            return False
        vehicles = list(self._world.list_vehicles(ride.ride_id, train.index))
        return vehicles != (self.vehicles_on_train.get() or [])

    def deselect(self) -> None:
        """Clear every selection level, deepest first."""
        self._vehicle_index = None
        self.vehicle.set(None)
        self.vehicles_on_train.set([])
        self._train_index = None
        self.train.set(None)
        self.trains_on_ride.set([])
        self._ride_index = None
        self.ride.set(None)

    # ------------------------------------------------------------------
    # Cascade helpers
    # ------------------------------------------------------------------
    def _apply_trains(
        self,
        ride: RideSummary,
        trains: Sequence[TrainHandle],
        train_index: Optional[int],
        vehicle_index: Optional[int],
    ) -> None:
        resolved = resolve_index(train_index, len(trains))
        self._train_index = resolved
        self.trains_on_ride.set(list(trains))

        if resolved is None:
            log.debug(f"Ride [{ride.ride_id}] has no trains; clearing train and vehicle")
            self._vehicle_index = None
            self.train.set(None)
            self.vehicles_on_train.set([])
            self.vehicle.set(None)
            return

        train = trains[resolved]
        self.train.set(train)
        vehicles = list(self._world.list_vehicles(ride.ride_id, train.index))
        self._apply_vehicles(vehicles, vehicle_index)

    def _apply_vehicles(self, vehicles: Sequence[RideVehicle], vehicle_index: Optional[int]) -> None:
        resolved = resolve_index(vehicle_index, len(vehicles))
        self._vehicle_index = resolved
        self.vehicles_on_train.set(list(vehicles))
        self.vehicle.set(vehicles[resolved] if resolved is not None else None)
