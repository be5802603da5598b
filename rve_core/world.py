"""Collaborator protocols between the editor and the running simulation."""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional, Protocol, Sequence, Tuple

from rve_core.model import CarState, EntityLocation, RideSummary, RideType, TrainHandle

if TYPE_CHECKING:  # pragma: no cover - only for type checking
    from rve_core.vehicle import RideVehicle


class VehicleStore(Protocol):
    """Reads and writes single car entities.

    Writers return the value that ended up stored, which may differ from the
    requested one when the simulation clamps it.
    """

    def has_entity(self, entity_id: int) -> bool:  # pragma: no cover - protocol only
        ...

    def get_car(self, entity_id: int) -> Optional[CarState]:  # pragma: no cover - protocol only
        ...

    def write_car_field(self, entity_id: int, field: str, value: int) -> int:  # pragma: no cover - protocol only
        ...

    def travel_by(self, entity_id: int, distance: int) -> int:  # pragma: no cover - protocol only
        ...

    def get_ride_type(self, type_id: int) -> Optional[RideType]:  # pragma: no cover - protocol only
        ...


class WorldQuery(Protocol):
    """Read-only enumeration of the park hierarchy.

    Results are snapshots; callers never cache them beyond one refresh.
    """

    def list_rides_in_park(self) -> Sequence[RideSummary]:  # pragma: no cover - protocol only
        ...

    def list_trains(self, ride_id: int) -> Sequence[TrainHandle]:  # pragma: no cover - protocol only
        ...

    def list_vehicles(self, ride_id: int, train_index: int) -> Sequence["RideVehicle"]:  # pragma: no cover - protocol only
        ...

    def find_entity(self, entity_id: int) -> Optional[EntityLocation]:  # pragma: no cover - protocol only
        ...

    def list_ride_types(self) -> Sequence[RideType]:  # pragma: no cover - protocol only
        ...


EntityClickCallback = Callable[[int], None]
FinishCallback = Callable[[], None]


class ToolHost(Protocol):
    """Modal input tool offered by the host (used by the vehicle picker)."""

    @property
    def active_tool_id(self) -> Optional[str]:  # pragma: no cover - protocol only
        ...

    def activate(
        self,
        tool_id: str,
        on_entity_clicked: EntityClickCallback,
        on_finish: FinishCallback,
    ) -> None:  # pragma: no cover - protocol only
        ...

    def cancel(self) -> None:  # pragma: no cover - protocol only
        ...


class Viewport(Protocol):
    def scroll_to(self, position: Tuple[int, int, int]) -> None:  # pragma: no cover - protocol only
        ...

