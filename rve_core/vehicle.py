"""Handle to a single car entity that may disappear at any time."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from rve_core.model import CarState, RideType
from rve_core.world import VehicleStore

log = logging.getLogger(__name__)


class EntityNotFoundError(LookupError):
    """Raised when a vehicle handle points at an entity that no longer exists."""

    def __init__(self, entity_id: int) -> None:
        super().__init__(f"entity {entity_id} no longer exists")
        self.entity_id = entity_id


@dataclass(frozen=True)
class RideVehicle:
    """
    Weak reference to a car: only the entity id is held, every access goes
    back to the store and fails with ``EntityNotFoundError`` once the car is
    gone. Two handles are equal when they point at the same entity.
    """

    entity_id: int
    store: VehicleStore = field(compare=False, repr=False)

    def exists(self) -> bool:
        return self.store.has_entity(self.entity_id)

    def get_car(self) -> CarState:
        car = self.store.get_car(self.entity_id)
        if car is None:
            raise EntityNotFoundError(self.entity_id)
        return car

    def try_get_car(self) -> Optional[CarState]:
        return self.store.get_car(self.entity_id)

    def ride_type(self) -> Optional[RideType]:
        return self.store.get_ride_type(self.get_car().ride_type_id)

    def is_powered(self) -> bool:
        car = self.get_car()
        ride_type = self.store.get_ride_type(car.ride_type_id)
        return ride_type is not None and ride_type.is_powered(car.variant)

    # ------------------------------------------------------------------
    # Writers; each returns the value the simulation actually stored.
    # ------------------------------------------------------------------
    def _write(self, field_name: str, value: int) -> int:
        if not self.exists():
            raise EntityNotFoundError(self.entity_id)
        stored = self.store.write_car_field(self.entity_id, field_name, value)
        log.debug(f"Car {self.entity_id}: {field_name} <- {value} (stored {stored})")
        return stored

    def set_ride_type(self, type_id: int) -> int:
        return self._write("ride_type_id", type_id)

    def set_variant(self, variant: int) -> int:
        return self._write("variant", variant)

    def set_seats(self, seats: int) -> int:
        return self._write("seats", seats)

    def set_mass(self, mass: int) -> int:
        return self._write("mass", mass)

    def set_powered_acceleration(self, value: int) -> int:
        return self._write("powered_acceleration", value)

    def set_powered_max_speed(self, value: int) -> int:
        return self._write("powered_max_speed", value)

    def set_sound_range(self, value: int) -> int:
        return self._write("sound_range", value)

    def travel_by(self, distance: int) -> int:
        if not self.exists():
            raise EntityNotFoundError(self.entity_id)
        return self.store.travel_by(self.entity_id, distance)
