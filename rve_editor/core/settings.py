"""Vehicle settings snapshot used for copy/paste and propagation."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Optional, Tuple

from rve_core.vehicle import EntityNotFoundError, RideVehicle


NO_SOUND = 255

# Supported sound range ids, in dropdown order. The "no sound" id takes the
# last slot.
SOUND_RANGE_IDS: Tuple[int, ...] = (0, 1, 2, 3, 4, NO_SOUND)

SOUND_RANGE_LABELS: Tuple[str, ...] = (
    "ID 0 - Screams 1 and 8",
    "ID 1 - Screams 1-7",
    "ID 2 - Screams 1 and 6",
    "ID 3 - Whistle",
    "ID 4 - Bell",
    "ID 255 - No Sound",
)


def sound_range_to_slot(sound_range: int) -> Optional[int]:
    """Dropdown slot for ``sound_range``, or None if the id is unsupported."""
    try:
        return SOUND_RANGE_IDS.index(sound_range)
    except ValueError:
        return None


def slot_to_sound_range(slot: int) -> Optional[int]:
    if 0 <= slot < len(SOUND_RANGE_IDS):
        return SOUND_RANGE_IDS[slot]
    return None


@dataclass(frozen=True)
class VehicleSettings:
    """
    Every editable attribute of one vehicle at the moment of capture.
    The entity id is deliberately not part of the snapshot.
    """
    ride_type_id: int
    variant: int
    track_progress: int
    seats: int
    mass: int
    powered_acceleration: int
    powered_max_speed: int
    sound_range: int

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def capture_settings(vehicle: RideVehicle) -> Optional[VehicleSettings]:
    """Snapshot ``vehicle``; returns None when the entity is gone."""
    try:
        car = vehicle.get_car()
    except EntityNotFoundError:
        return None
    return VehicleSettings(
        ride_type_id=car.ride_type_id,
        variant=car.variant,
        track_progress=car.track_progress,
        seats=car.seats,
        mass=car.mass,
        powered_acceleration=car.powered_acceleration,
        powered_max_speed=car.powered_max_speed,
        sound_range=car.sound_range,
    )
