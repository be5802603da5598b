"""
park.py

In-memory park simulation implementing the ``WorldQuery`` and ``VehicleStore``
collaborators, plus the simulated tool host and main viewport used by the
editor when no real host is attached.

Car fields are stored with fixed widths, the same way a typed memory writer
packs them, so writes outside a field's range end up clamped:

  ride_type_id u16 | variant u8 | seats u8 | mass u16
  powered_acceleration u8 | powered_max_speed u8 | sound_range u8
  track_progress i32 (wraps)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from rve_core.model import CarState, EntityLocation, RideSummary, RideType, TrainHandle
from rve_core.vehicle import EntityNotFoundError, RideVehicle
from rve_core.world import EntityClickCallback, FinishCallback

log = logging.getLogger(__name__)


TYPE_RANGES: Dict[str, Tuple[int, int]] = {
    "u8": (0, 0xFF),
    "u16": (0, 0xFFFF),
    "i32": (-0x80000000, 0x7FFFFFFF),
}

FIELD_TYPES: Dict[str, str] = {
    "ride_type_id": "u16",
    "variant": "u8",
    "seats": "u8",
    "mass": "u16",
    "powered_acceleration": "u8",
    "powered_max_speed": "u8",
    "sound_range": "u8",
    "track_progress": "i32",
}


def wrap_i32(value: int) -> int:
    """Wrap ``value`` into the signed 32-bit range."""
    return ((int(value) + 0x80000000) & 0xFFFFFFFF) - 0x80000000


def clamp_to_type(value: int, type_name: str) -> int:
    if type_name == "i32":
        return wrap_i32(value)
    low, high = TYPE_RANGES[type_name]
    return max(low, min(high, int(value)))


@dataclass
class _Car:
    entity_id: int
    ride_id: int
    fields: Dict[str, int]
    position: Tuple[int, int, int] = (0, 0, 0)

    def snapshot(self) -> CarState:
        return CarState(
            entity_id=self.entity_id,
            ride_id=self.ride_id,
            position=self.position,
            **self.fields,
        )


@dataclass
class _Ride:
    ride_id: int
    name: str
    trains: List[List[int]] = field(default_factory=list)


DEFAULT_CAR_FIELDS: Dict[str, int] = {
    "ride_type_id": 0,
    "variant": 0,
    "track_progress": 0,
    "seats": 0,
    "mass": 0,
    "powered_acceleration": 0,
    "powered_max_speed": 0,
    "sound_range": 255,
}


class Park:
    """Single-operator park simulation holding rides, trains and car entities."""

    def __init__(self) -> None:
        self._ride_types: Dict[int, RideType] = {}
        self._rides: Dict[int, _Ride] = {}
        self._cars: Dict[int, _Car] = {}
        self._next_entity_id = 0

    # ------------------------------------------------------------------
    # Building the park
    # ------------------------------------------------------------------
    def add_ride_type(self, ride_type: RideType) -> RideType:
        if ride_type.variant_count < 1:
            raise ValueError(f"ride type {ride_type.type_id} needs at least one variant")
        self._ride_types[ride_type.type_id] = ride_type
        return ride_type

    def add_ride(self, ride_id: int, name: str) -> RideSummary:
        if ride_id in self._rides:
            raise ValueError(f"ride {ride_id} already exists")
        self._rides[ride_id] = _Ride(ride_id, name)
        return RideSummary(ride_id, name)

    def add_train(self, ride_id: int, cars: Iterable[Mapping[str, int]]) -> int:
        """Append a train built from ``cars`` and return its index on the ride."""
        ride = self._require_ride(ride_id)
        entity_ids: List[int] = []
        for car_fields in cars:
            values = dict(car_fields)
            entity_id = values.pop("entity_id", None)
            if entity_id is None:
                entity_id = self._next_entity_id
            if entity_id in self._cars:
                raise ValueError(f"entity {entity_id} already exists")
            self._next_entity_id = max(self._next_entity_id, entity_id + 1)

            position = tuple(values.pop("position", (0, 0, 0)))
            unknown = set(values) - set(DEFAULT_CAR_FIELDS)
            if unknown:
                raise ValueError(f"unknown car fields: {', '.join(sorted(unknown))}")
            fields = dict(DEFAULT_CAR_FIELDS)
            for name, value in values.items():
                fields[name] = clamp_to_type(value, FIELD_TYPES[name])
            self._cars[entity_id] = _Car(entity_id, ride_id, fields, position)  # type: ignore[arg-type]
            entity_ids.append(entity_id)
        ride.trains.append(entity_ids)
        return len(ride.trains) - 1

    def remove_train(self, ride_id: int, train_index: int) -> None:
        ride = self._require_ride(ride_id)
        for entity_id in ride.trains.pop(train_index):
            self._cars.pop(entity_id, None)

    def remove_ride(self, ride_id: int) -> None:
        ride = self._rides.pop(ride_id, None)
        if ride is None:
            return
        for train in ride.trains:
            for entity_id in train:
                self._cars.pop(entity_id, None)

    def remove_entity(self, entity_id: int) -> None:
        """Delete a car, unlinking it from its train (empty trains are dropped)."""
        car = self._cars.pop(entity_id, None)
        if car is None:
            return
        ride = self._rides.get(car.ride_id)
        if ride is None:
            return
        for train in ride.trains:
            if entity_id in train:
                train.remove(entity_id)
        ride.trains = [train for train in ride.trains if train]

    def step(self, ticks: int = 1) -> None:
        """Advance every car along its track; powered cars use their max speed."""
        for car in self._cars.values():
            ride_type = self._ride_types.get(car.fields["ride_type_id"])
            speed = 1
            if ride_type is not None and ride_type.is_powered(car.fields["variant"]):
                speed = max(1, car.fields["powered_max_speed"])
            car.fields["track_progress"] = wrap_i32(car.fields["track_progress"] + speed * ticks)

    def _require_ride(self, ride_id: int) -> _Ride:
        ride = self._rides.get(ride_id)
        if ride is None:
            raise KeyError(f"unknown ride {ride_id}")
        return ride

    # ------------------------------------------------------------------
    # WorldQuery
    # ------------------------------------------------------------------
    def list_rides_in_park(self) -> List[RideSummary]:
        return [RideSummary(r.ride_id, r.name) for r in self._rides.values()]

    def list_trains(self, ride_id: int) -> List[TrainHandle]:
        ride = self._rides.get(ride_id)
        if ride is None:
            return []
        return [TrainHandle(ride_id, index) for index in range(len(ride.trains))]

    def list_vehicles(self, ride_id: int, train_index: int) -> List[RideVehicle]:
        ride = self._rides.get(ride_id)
        if ride is None or not (0 <= train_index < len(ride.trains)):
            return []
        return [RideVehicle(entity_id, self) for entity_id in ride.trains[train_index]]

    def find_entity(self, entity_id: int) -> Optional[EntityLocation]:
        car = self._cars.get(entity_id)
        if car is None:
            return None
        ride = self._rides.get(car.ride_id)
        if ride is None:
            return None
        for train_index, train in enumerate(ride.trains):
            if entity_id in train:
                return EntityLocation(ride.ride_id, train_index, train.index(entity_id))
        return None

    def list_ride_types(self) -> List[RideType]:
        return sorted(self._ride_types.values(), key=lambda t: t.type_id)

    def list_trains_raw(self, ride_id: int) -> List[List[int]]:
        """Entity ids per train, for serialisation."""
        return [list(train) for train in self._require_ride(ride_id).trains]

    # ------------------------------------------------------------------
    # VehicleStore
    # ------------------------------------------------------------------
    def has_entity(self, entity_id: int) -> bool:
        return entity_id in self._cars

    def get_car(self, entity_id: int) -> Optional[CarState]:
        car = self._cars.get(entity_id)
        return car.snapshot() if car is not None else None

    def write_car_field(self, entity_id: int, field_name: str, value: int) -> int:
        car = self._cars.get(entity_id)
        if car is None:
            raise EntityNotFoundError(entity_id)
        type_name = FIELD_TYPES.get(field_name)
        if type_name is None:
            raise KeyError(f"unknown car field {field_name!r}")
        stored = clamp_to_type(value, type_name)
        car.fields[field_name] = stored
        return stored

    def travel_by(self, entity_id: int, distance: int) -> int:
        car = self._cars.get(entity_id)
        if car is None:
            raise EntityNotFoundError(entity_id)
        car.fields["track_progress"] = wrap_i32(car.fields["track_progress"] + int(distance))
        return car.fields["track_progress"]

    def get_ride_type(self, type_id: int) -> Optional[RideType]:
        return self._ride_types.get(type_id)


class SimulatedToolHost:
    """Tool host with a single active tool; ``click`` simulates a map click."""

    def __init__(self) -> None:
        self._tool_id: Optional[str] = None
        self._on_click: Optional[EntityClickCallback] = None
        self._on_finish: Optional[FinishCallback] = None

    @property
    def active_tool_id(self) -> Optional[str]:
        return self._tool_id

    def activate(
        self,
        tool_id: str,
        on_entity_clicked: EntityClickCallback,
        on_finish: FinishCallback,
    ) -> None:
        if self._tool_id is not None:
            self.cancel()
        log.debug(f"Tool '{tool_id}' activated")
        self._tool_id = tool_id
        self._on_click = on_entity_clicked
        self._on_finish = on_finish

    def cancel(self) -> None:
        if self._tool_id is None:
            return
        log.debug(f"Tool '{self._tool_id}' cancelled")
        on_finish = self._on_finish
        self._tool_id = None
        self._on_click = None
        self._on_finish = None
        if on_finish is not None:
            on_finish()

    def click(self, entity_id: Optional[int]) -> None:
        if self._on_click is None or entity_id is None:
            return
        self._on_click(entity_id)


class MainViewport:
    """Main view of the park; remembers where it was last scrolled to."""

    def __init__(self) -> None:
        self.position: Optional[Tuple[int, int, int]] = None

    def scroll_to(self, position: Tuple[int, int, int]) -> None:
        self.position = tuple(position)  # type: ignore[assignment]


__all__ = [
    "FIELD_TYPES",
    "MainViewport",
    "Park",
    "SimulatedToolHost",
    "clamp_to_type",
    "wrap_i32",
]
