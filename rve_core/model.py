"""
model.py

Immutable data models describing rides, trains, ride types and the raw state
of a single car entity inside the park simulation.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class RideSummary:
    """
    Ride listed in the park.
    - ride_id: simulation id of the ride (stable while the ride exists)
    - name: display name
    """
    ride_id: int
    name: str


@dataclass(frozen=True)
class TrainHandle:
    """
    Train identified by its position within a ride's current train list.
    Not stable across ride modifications; re-resolve on every refresh.
    """
    ride_id: int
    index: int


@dataclass(frozen=True)
class RideType:
    """
    Ride object a car is built from.
    - type_id: object id of the ride type
    - name: display name
    - variant_count: number of sprite variants (vehicle objects) available
    - powered_variants: variant indices that drive under their own power
    """
    type_id: int
    name: str
    variant_count: int = 1
    powered_variants: FrozenSet[int] = field(default_factory=frozenset)

    def is_powered(self, variant: int) -> bool:
        return variant in self.powered_variants


@dataclass(frozen=True)
class CarState:
    """
    Snapshot of one car entity as stored by the simulation.
    - entity_id: entity id of the car
    - ride_id: ride the car belongs to
    - ride_type_id: ride object (ride type) id
    - variant: vehicle object index within the ride type
    - track_progress: signed 32-bit distance along the current track piece
    - seats: number of seats (u8)
    - mass: total mass including passengers (u16)
    - powered_acceleration / powered_max_speed: u8, powered cars only
    - sound_range: sound range id (0-4, 255 for no sound)
    - position: (x, y, z) world coordinates, used to locate the car
    """
    entity_id: int
    ride_id: int
    ride_type_id: int
    variant: int
    track_progress: int
    seats: int
    mass: int
    powered_acceleration: int
    powered_max_speed: int
    sound_range: int
    position: Tuple[int, int, int] = (0, 0, 0)


@dataclass(frozen=True)
class EntityLocation:
    """Where a car entity sits in the ride → train → vehicle hierarchy."""
    ride_id: int
    train_index: int
    vehicle_index: int


def describe_ride(ride: RideSummary, show_ids: bool = False) -> str:
    if show_ids:
        return f"[{ride.ride_id}] {ride.name}"
    return ride.name


def describe_ride_type(ride_type: Optional[RideType], show_ids: bool = False) -> str:
    if ride_type is None:
        return ""
    if show_ids:
        return f"[{ride_type.type_id}] {ride_type.name}"
    return ride_type.name
